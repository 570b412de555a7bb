"""assayer: assertions over HTTP, JSON, DOM and component-tree content.

Quick start::

    from assayer import JsonDocumentAdapter, ScenarioContext, SuiteReport, render

    context = ScenarioContext('Users API')
    context.attach(JsonDocumentAdapter.from_httpx(context, response))
    context.assert_that(await context.find('data[0].name')).equals('Ada')
    context.finish()
    print(render(SuiteReport.from_contexts('API', [context]), 'text'))
"""

from .adapters import (
    BrowserPageAdapter,
    Capability,
    ComponentNode,
    ComponentTreeAdapter,
    ContentAdapter,
    DomElement,
    FindOptions,
    HttpBundle,
    JsonDocumentAdapter,
    RawHttpAdapter,
    ResponseType,
    create_adapter,
)
from .assertion import Assertion
from .context import ScenarioContext
from .errors import (
    AssayerError,
    LogSealedError,
    NoContentError,
    RecordError,
    ScenarioNotFoundError,
    UnsupportedFormatError,
    UnsupportedOperationError,
)
from .report import OutputFormat, SuiteReport, render
from .results import AssertionLog
from .settings import RunSettings
from .tracker import CompletionRecord, CompletionTracker, OutputBuffer, discover_scenarios
from .value import Value

__version__ = '0.1.0'

__all__ = [
    'AssayerError',
    'Assertion',
    'AssertionLog',
    'BrowserPageAdapter',
    'Capability',
    'CompletionRecord',
    'CompletionTracker',
    'ComponentNode',
    'ComponentTreeAdapter',
    'ContentAdapter',
    'DomElement',
    'FindOptions',
    'HttpBundle',
    'JsonDocumentAdapter',
    'LogSealedError',
    'NoContentError',
    'OutputBuffer',
    'OutputFormat',
    'RawHttpAdapter',
    'RecordError',
    'ResponseType',
    'RunSettings',
    'ScenarioContext',
    'ScenarioNotFoundError',
    'SuiteReport',
    'UnsupportedFormatError',
    'UnsupportedOperationError',
    'Value',
    'create_adapter',
    'discover_scenarios',
    'render',
]
