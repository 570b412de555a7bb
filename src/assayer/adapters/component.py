"""Ext JS component tree of a live Playwright page.

Selectors are ``Ext.ComponentQuery`` expressions. Each match is a
:class:`ComponentNode` holding a JS handle to the component object::

    button = await adapter.find('button[text="Save"]')
    await button.raw.click()
    context.assert_that(await button.raw.is_disabled()).equals(False)
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from playwright.async_api import JSHandle

from ..value import Value
from .base import (
    DEFAULT_WAIT_TIMEOUT_MS,
    Capability,
    FindArg,
    FindOptions,
    FindParams,
    ResponseType,
)
from .page import LivePageAdapter

if TYPE_CHECKING:
    from ..context import ScenarioContext

# xtype -> class name of the stock modern toolkit components
COMPONENT_TYPES: dict[str, str] = {
    'actionsheet': 'Ext.ActionSheet',
    'audio': 'Ext.Audio',
    'button': 'Ext.Button',
    'image': 'Ext.Img',
    'label': 'Ext.Label',
    'loadmask': 'Ext.LoadMask',
    'panel': 'Ext.Panel',
    'segmentedbutton': 'Ext.SegmentedButton',
    'sheet': 'Ext.Sheet',
    'spacer': 'Ext.Spacer',
    'titlebar': 'Ext.TitleBar',
    'toolbar': 'Ext.Toolbar',
    'video': 'Ext.Video',
    'carousel': 'Ext.carousel.Carousel',
    'navigationview': 'Ext.navigation.View',
    'datepicker': 'Ext.picker.Date',
    'picker': 'Ext.picker.Picker',
    'slider': 'Ext.slider.Slider',
    'thumb': 'Ext.slider.Thumb',
    'tabpanel': 'Ext.tab.Panel',
    'viewport': 'Ext.viewport.Default',
    'dataview': 'Ext.dataview.DataView',
    'list': 'Ext.dataview.List',
    'nestedlist': 'Ext.dataview.NestedList',
    'checkboxfield': 'Ext.field.Checkbox',
    'datepickerfield': 'Ext.field.DatePicker',
    'emailfield': 'Ext.field.Email',
    'hiddenfield': 'Ext.field.Hidden',
    'numberfield': 'Ext.field.Number',
    'passwordfield': 'Ext.field.Password',
    'radiofield': 'Ext.field.Radio',
    'searchfield': 'Ext.field.Search',
    'selectfield': 'Ext.field.Select',
    'sliderfield': 'Ext.field.Slider',
    'spinnerfield': 'Ext.field.Spinner',
    'textfield': 'Ext.field.Text',
    'textareafield': 'Ext.field.TextArea',
    'togglefield': 'Ext.field.Toggle',
    'treelist': 'Ext.list.Tree',
    'urlfield': 'Ext.field.Url',
    'fieldset': 'Ext.form.FieldSet',
    'formpanel': 'Ext.form.Panel',
}

_QUERY_JS = 's => Ext.ComponentQuery.query(s)'
_QUERY_WITHIN_JS = '(c, s) => c.query(s)'
_TEXT_JS = '''c => {
    if (typeof c.getText === 'function') return String(c.getText() ?? '');
    if (typeof c.getValue === 'function') return String(c.getValue() ?? '');
    return '';
}'''

_WAIT_EXISTS_JS = '''s => Ext.ComponentQuery.query(s)[0] || null'''
_WAIT_VISIBLE_JS = '''s => Ext.ComponentQuery.query(s)
    .find(c => c.isVisible()) || null'''
_WAIT_HIDDEN_JS = '''s => Ext.ComponentQuery.query(s)
    .every(c => c.isHidden())'''
_WAIT_TEXT_JS = '''([s, text]) => Ext.ComponentQuery.query(s)
    .find(c => typeof c.getText === 'function'
        && String(c.getText() ?? '').includes(text)) || null'''

# Navigation scripts return arrays so a miss is an empty array, not null.
_DOWN_JS = '(c, s) => [c.down(s)].filter(Boolean)'
_CHILD_JS = '(c, s) => [c.child(s)].filter(Boolean)'
_UP_JS = '(c, s) => [c.up(s)].filter(Boolean)'
_PARENT_JS = 'c => [c.parent || c.getParent()].filter(Boolean)'
_ANCESTORS_JS = '''(c, s) => {
    const found = [];
    for (let p = c.up(); p; p = p.up()) {
        if (!s || p.is(s)) found.push(p);
    }
    return found;
}'''


async def split_array(array: JSHandle) -> list[JSHandle]:
    """Handles to each element of a JS array handle."""
    length = await array.evaluate('r => r.length')
    return [
        await array.evaluate_handle('(r, i) => r[i]', i)
        for i in range(length)
    ]


class ComponentNode:
    """Live handle to one component in the page's component tree."""

    value_type = 'component'

    def __init__(
        self,
        handle: JSHandle,
        context: ScenarioContext,
        path: str,
    ) -> None:
        self.handle = handle
        self._context = context
        self.path = path
        self._xtype: str | None = None

    def __repr__(self) -> str:
        return f'<ComponentNode {self.name}>'

    @property
    def name(self) -> str:
        if self._xtype:
            return f'<{self._xtype}> Component @ {self.path}'
        return self.path or 'Component'

    @property
    def class_name(self) -> str | None:
        """Toolkit class for the reported xtype, once identified."""
        return COMPONENT_TYPES.get(self._xtype or '')

    async def identify(self) -> str:
        """Fetch and cache the component's xtype; returns the display name."""
        if self._xtype is None:
            self._xtype = await self.handle.evaluate('c => c.xtype || null') or ''
        return self.name

    async def _eval(self, js: str, arg: Any = None) -> Any:
        if arg is None:
            return await self.handle.evaluate(js)
        return await self.handle.evaluate(js, arg)

    async def _value(self, js: str, label: str, arg: Any = None) -> Value:
        raw = await self._eval(js, arg)
        await self.identify()
        return Value(
            raw, label.replace('{name}', self.name), self.path, self._context,
        )

    # ── Accessors ─────────────────────────────────────────────────────

    async def get_type(self) -> Value:
        await self.identify()
        return Value(
            self._xtype or None, f'Type of {self.name}', self.path,
            self._context,
        )

    async def get_id(self) -> Value:
        return await self._value('c => c.getId()', 'Id of {name}')

    async def get_value(self) -> Value:
        return await self._value('c => c.getValue()', 'Value of {name}')

    async def set_value(self, value: Any) -> Value:
        return await self._value(
            '(c, v) => { c.setValue(JSON.parse(v)); return c.getValue(); }',
            'Set value of {name}', json.dumps(value),
        )

    async def get_data(self) -> Value:
        return await self._value('c => c.getData()', 'Data of {name}')

    async def set_data(self, data: Any) -> Value:
        return await self._value(
            '(c, v) => { c.setData(JSON.parse(v)); return c.getData(); }',
            'Set data of {name}', json.dumps(data),
        )

    async def get_text(self) -> Value:
        return await self._value('c => c.getText()', 'Text of {name}')

    async def get_size(self) -> Value:
        return await self._value('c => c.getSize()', 'Size of {name}')

    async def get_width(self) -> Value:
        return await self._value('c => c.getSize().width', 'Width of {name}')

    async def get_height(self) -> Value:
        return await self._value('c => c.getSize().height', 'Height of {name}')

    async def is_visible(self) -> Value:
        return await self._value(
            'c => !!c.isVisible()', 'Is {name} visible?',
        )

    async def is_hidden(self) -> Value:
        return await self._value('c => !!c.isHidden()', 'Is {name} hidden?')

    async def is_enabled(self) -> Value:
        return await self._value(
            'c => !c.isDisabled()', 'Is {name} enabled?',
        )

    async def is_disabled(self) -> Value:
        return await self._value(
            'c => !!c.isDisabled()', 'Is {name} disabled?',
        )

    async def get_property(self, key: str) -> Value:
        return await self._value('(c, k) => c[k]', f'{{name}}.{key}', key)

    # ── Actions ───────────────────────────────────────────────────────

    async def enable(self) -> Value:
        return await self._value('c => { c.enable(); }', 'Enable {name}')

    async def disable(self) -> Value:
        return await self._value('c => { c.disable(); }', 'Disable {name}')

    async def show(self) -> Value:
        return await self._value('c => { c.show(); }', 'Show {name}')

    async def hide(self) -> Value:
        return await self._value('c => { c.hide(); }', 'Hide {name}')

    async def focus(self) -> Value:
        return await self._value('c => { c.focus(); }', 'Focus on {name}')

    async def click(self) -> None:
        await self._eval('c => c.element.dom.click()')

    async def fire_event(self, event_name: str) -> Value:
        return await self._value(
            '(c, e) => c.fireEvent(e)', f'Fired {event_name} on {{name}}',
            event_name,
        )

    async def call(self, method: str, *args: Any) -> Value:
        """Invoke ``component[method](*args)``; arguments go over as JSON."""
        encoded = [json.dumps(a) for a in args]
        return await self._value(
            '(c, [m, a]) => c[m](...a.map(v => JSON.parse(v)))',
            f'{{name}}.{method}({",".join(encoded)})',
            [method, encoded],
        )

    # ── Tree navigation ───────────────────────────────────────────────

    async def _related(
        self, js: str, selector: str | None, path: str,
    ) -> list[ComponentNode]:
        if selector is None:
            array = await self.handle.evaluate_handle(js)
        else:
            array = await self.handle.evaluate_handle(js, selector)
        await self.identify()
        return [
            ComponentNode(h, self._context, path)
            for h in await split_array(array)
        ]

    def _first(self, nodes: list[ComponentNode], name: str, path: str) -> Value:
        return Value(nodes[0] if nodes else None, name, path, self._context)

    async def down(self, selector: str) -> Value:
        """First descendant matching *selector*."""
        nodes = await self._related(_DOWN_JS, selector, selector)
        return self._first(nodes, f'{selector} below {self.name}', selector)

    async def child(self, selector: str) -> Value:
        """First direct child matching *selector*."""
        nodes = await self._related(_CHILD_JS, selector, selector)
        return self._first(nodes, f'{selector} child of {self.name}', selector)

    async def up(self, selector: str) -> Value:
        """Nearest ancestor matching *selector*."""
        nodes = await self._related(_UP_JS, selector, selector)
        return self._first(nodes, f'{selector} above {self.name}', selector)

    async def parent(self) -> Value:
        path = f'{self.path}/..'
        nodes = await self._related(_PARENT_JS, None, path)
        return self._first(nodes, f'Parent of {self.name}', path)

    async def ancestors(self, selector: str | None = None) -> list[Value]:
        """Ancestors from the nearest outwards, optionally filtered."""
        path = selector or f'{self.path}/..'
        nodes = await self._related(_ANCESTORS_JS, selector or '', path)
        return [
            Value(node, f'Ancestors of {self.name} [{i}]', path, self._context)
            for i, node in enumerate(nodes)
        ]


class ComponentTreeAdapter(LivePageAdapter):
    """Component tree of a rendered Ext JS application."""

    response_type = ResponseType.COMPONENT
    display_name = 'Component'
    capabilities = frozenset({
        Capability.FIND,
        Capability.FIND_ALL,
        Capability.EVAL,
        Capability.WAIT,
        Capability.INPUT,
        Capability.SCREENSHOT,
    })

    def can_query(self, raw: Any) -> bool:
        return isinstance(raw, ComponentNode)

    def _node(self, handle: JSHandle | None, name: str, path: str) -> Value:
        if handle is None:
            return self._wrap(None, name, path)
        return self._wrap(ComponentNode(handle, self.context, path), name, path)

    async def _query(
        self,
        parent: Any,
        selector: str,
        params: FindParams,
    ) -> list[Value]:
        if isinstance(parent, ComponentNode):
            array = await parent.handle.evaluate_handle(
                _QUERY_WITHIN_JS, selector,
            )
        else:
            array = await self._page.evaluate_handle(_QUERY_JS, selector)
        handles = await split_array(array)
        return [
            self._node(h, params.name_for(selector, i), selector)
            for i, h in enumerate(handles)
        ]

    async def _text_of(self, raw: Any) -> str:
        if isinstance(raw, ComponentNode):
            return await raw.handle.evaluate(_TEXT_JS)
        return await super()._text_of(raw)

    # ── Waits ─────────────────────────────────────────────────────────

    async def _poll(
        self,
        selector: str,
        description: str,
        timeout_ms: int,
        js: str,
        arg: Any,
    ) -> Any:
        return await self._wait(
            selector, description, timeout_ms,
            self._page.wait_for_function(js, arg=arg, timeout=timeout_ms),
        )

    async def wait_for_exists(
        self, selector: str, timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS,
    ) -> Value:
        handle = await self._poll(
            selector, 'exists', timeout_ms, _WAIT_EXISTS_JS, selector,
        )
        return self._node(handle, selector, selector)

    async def wait_for_visible(
        self, selector: str, timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS,
    ) -> Value:
        handle = await self._poll(
            selector, 'is visible', timeout_ms, _WAIT_VISIBLE_JS, selector,
        )
        return self._node(handle, selector, selector)

    async def wait_for_hidden(
        self, selector: str, timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS,
    ) -> Value:
        await self._poll(
            selector, 'is hidden', timeout_ms, _WAIT_HIDDEN_JS, selector,
        )
        return self._not_found(selector)

    async def wait_for_having_text(
        self,
        selector: str,
        text: str,
        timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS,
    ) -> Value:
        handle = await self._poll(
            selector, f'has text "{text}"', timeout_ms,
            _WAIT_TEXT_JS, [selector, text],
        )
        return self._node(handle, selector, selector)

    # ── Input ─────────────────────────────────────────────────────────

    async def click(
        self,
        selector: str,
        contains_or_matches: FindArg = None,
        opts: FindOptions | None = None,
    ) -> Value:
        self._require(Capability.INPUT, 'click')
        node = await self.find(selector, contains_or_matches, opts)
        if node.exists:
            await node.raw.click()
        return node

    async def type_text(self, selector: str, text: str) -> Value:
        """Append *text* to the value of the first matching field."""
        self._require(Capability.INPUT, 'type')
        node = await self.find(selector)
        if node.exists:
            current = (await node.raw.get_value()).raw or ''
            await node.raw.set_value(f'{current}{text}')
        return node

    async def clear(self, selector: str) -> Value:
        self._require(Capability.INPUT, 'clear')
        node = await self.find(selector)
        if node.exists:
            await node.raw.call('setValue', '')
        return node
