"""Tests for the component tree adapter against in-memory component handles."""

from __future__ import annotations

import json

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from assayer.adapters import (
    COMPONENT_TYPES,
    Capability,
    ComponentNode,
    ComponentTreeAdapter,
    create_adapter,
)
from assayer.errors import UnsupportedOperationError


class FakeComponent:
    """Evaluates the adapter's component scripts against Python state."""

    def __init__(self, xtype, *, cid='cmp-1', text='', value=None,
                 hidden=False, disabled=False, children=None, props=None):
        self.xtype = xtype
        self.cid = cid
        self.text = text
        self.value = value
        self.data = None
        self.hidden = hidden
        self.disabled = disabled
        self.children = children or {}
        self.props = props or {}
        self.owner = None
        for child in (c for group in self.children.values() for c in group):
            child.owner = self
        self.clicks = 0
        self.events: list[str] = []
        self.calls: list[tuple[str, list]] = []

    async def evaluate(self, js, arg=None):
        if 'c.xtype' in js:
            return self.xtype
        if "typeof c.getText === 'function'" in js:
            return self.text
        if 'c[m](' in js:
            method, encoded = arg
            args = [json.loads(a) for a in encoded]
            self.calls.append((method, args))
            if method == 'setValue':
                self.value = args[0]
            return None
        if 'c.setValue(' in js:
            self.value = json.loads(arg)
            return self.value
        if 'c.setData(' in js:
            self.data = json.loads(arg)
            return self.data
        if 'c.getId()' in js:
            return self.cid
        if 'c.getValue()' in js:
            return self.value
        if 'c.getData()' in js:
            return self.data
        if 'c.getText()' in js:
            return self.text
        if 'getSize().width' in js:
            return 120
        if 'getSize().height' in js:
            return 40
        if 'c.getSize()' in js:
            return {'width': 120, 'height': 40}
        if 'isVisible' in js:
            return not self.hidden
        if 'isHidden' in js:
            return self.hidden
        if '!c.isDisabled()' in js and '!!' not in js:
            return not self.disabled
        if 'isDisabled' in js:
            return self.disabled
        if 'c[k]' in js:
            return self.props.get(arg)
        if 'c.enable()' in js:
            self.disabled = False
            return None
        if 'c.disable()' in js:
            self.disabled = True
            return None
        if 'c.show()' in js:
            self.hidden = False
            return None
        if 'c.hide()' in js:
            self.hidden = True
            return None
        if 'c.focus()' in js:
            return None
        if 'dom.click()' in js:
            self.clicks += 1
            return None
        if 'fireEvent' in js:
            self.events.append(arg)
            return True
        raise AssertionError(f'unexpected script: {js}')

    def _owners(self):
        owner = self.owner
        while owner is not None:
            yield owner
            owner = owner.owner

    async def evaluate_handle(self, js, selector=None):
        if 'for (let p = c.up()' in js:
            return FakeArray(
                o for o in self._owners() if not selector or o.xtype == selector
            )
        if 'c.query(s)' in js:
            return FakeArray(self.children.get(selector, []))
        if 'c.down(s)' in js or 'c.child(s)' in js:
            return FakeArray(self.children.get(selector, [])[:1])
        if 'c.up(s)' in js:
            return FakeArray(
                [o for o in self._owners() if o.xtype == selector][:1]
            )
        if 'c.getParent()' in js:
            return FakeArray([self.owner] if self.owner else [])
        raise AssertionError(f'unexpected script: {js}')


class FakeArray:

    def __init__(self, items):
        self.items = list(items)

    async def evaluate(self, js):
        assert 'length' in js
        return len(self.items)

    async def evaluate_handle(self, js, index):
        return self.items[index]


class FakeExtPage:
    """Component query table standing in for a page running Ext JS."""

    def __init__(self, components):
        self.components = components

    async def evaluate_handle(self, js, selector):
        assert 'Ext.ComponentQuery.query' in js
        return FakeArray(self.components.get(selector, []))

    async def wait_for_function(self, js, *, arg, timeout):
        if isinstance(arg, list):
            selector, text = arg
            for c in self.components.get(selector, []):
                if text in c.text:
                    return c
        else:
            found = self.components.get(arg, [])
            if '.every(' in js:
                if all(c.hidden for c in found):
                    return True
            elif 'isVisible' in js:
                visible = [c for c in found if not c.hidden]
                if visible:
                    return visible[0]
            elif found:
                return found[0]
        raise PlaywrightTimeoutError(f'Timeout {timeout}ms exceeded.')


@pytest.fixture
def page():
    name_field = FakeComponent('textfield', cid='name', value='Ada')
    save = FakeComponent('button', cid='save', text='Save')
    cancel = FakeComponent('button', cid='cancel', text='Cancel', disabled=True)
    form = FakeComponent(
        'formpanel', cid='form',
        children={'button': [save, cancel], 'textfield': [name_field]},
    )
    FakeComponent('viewport', cid='main', children={'formpanel': [form]})
    return FakeExtPage({
        'formpanel': [form],
        'button': [save, cancel],
        'textfield': [name_field],
        'loadmask': [FakeComponent('loadmask', hidden=True)],
    })


@pytest.fixture
def adapter(context, page):
    return context.attach(ComponentTreeAdapter(context, page))


# =====================================================================
# 1. Queries
# =====================================================================


class TestComponentFind:

    @pytest.mark.asyncio
    async def test_find_returns_component_node(self, adapter):
        button = await adapter.find('button')
        assert isinstance(button.raw, ComponentNode)
        assert button.type_name == 'component'
        assert button.name == 'button'

    @pytest.mark.asyncio
    async def test_find_missing(self, adapter):
        assert not (await adapter.find('tabpanel')).exists

    @pytest.mark.asyncio
    async def test_find_by_text(self, adapter):
        cancel = await adapter.find('button', 'Cancel')
        assert (await cancel.raw.get_id()).raw == 'cancel'

    @pytest.mark.asyncio
    async def test_find_all_and_sub_query(self, context, adapter):
        assert len(await adapter.find_all('button')) == 2
        form = await context.find('formpanel')
        assert form.is_queryable
        fields = await form.find_all('textfield')
        assert len(fields) == 1
        assert (await fields[0].raw.get_value()).raw == 'Ada'

    @pytest.mark.asyncio
    async def test_xpath_is_unsupported(self, adapter):
        with pytest.raises(UnsupportedOperationError) as exc_info:
            await adapter.find_xpath('//div')
        assert 'Component' in str(exc_info.value)
        assert not adapter.supports(Capability.XPATH)
        with pytest.raises(UnsupportedOperationError):
            await adapter.wait_for_xpath('//div')

    @pytest.mark.asyncio
    async def test_scalar_value_does_not_query_the_tree(self, adapter):
        button = await adapter.find('button')
        text = await button.raw.get_text()
        assert text.raw == 'Save'
        assert not text.is_queryable
        missing = await text.find('textfield')
        assert not missing.exists
        assert missing.name == 'textfield'
        assert await text.find_all('button') == []


# =====================================================================
# 2. Tree navigation
# =====================================================================


class TestComponentNavigation:

    @pytest.mark.asyncio
    async def test_down_and_child(self, adapter):
        form = (await adapter.find('formpanel')).raw
        save = await form.down('button')
        assert (await save.raw.get_id()).raw == 'save'
        assert save.name == 'button below <formpanel> Component @ formpanel'
        field = await form.child('textfield')
        assert (await field.raw.get_value()).raw == 'Ada'
        assert not (await form.down('tabpanel')).exists

    @pytest.mark.asyncio
    async def test_up_and_parent(self, adapter):
        save = (await adapter.find('button')).raw
        form = await save.up('formpanel')
        assert (await form.raw.get_id()).raw == 'form'
        parent = await save.parent()
        assert (await parent.raw.get_id()).raw == 'form'
        assert parent.name == 'Parent of <button> Component @ button'
        assert not (await save.up('tabpanel')).exists

    @pytest.mark.asyncio
    async def test_ancestors(self, adapter):
        save = (await adapter.find('button')).raw
        chain = await save.ancestors()
        assert [(await a.raw.get_id()).raw for a in chain] == ['form', 'main']
        only = await save.ancestors('viewport')
        assert len(only) == 1
        assert (await only[0].raw.get_id()).raw == 'main'

    @pytest.mark.asyncio
    async def test_root_has_no_parent(self, adapter):
        form = (await adapter.find('formpanel')).raw
        viewport = (await form.parent()).raw
        assert not (await viewport.parent()).exists
        assert await viewport.ancestors() == []


# =====================================================================
# 3. Node accessors
# =====================================================================


class TestComponentNode:

    @pytest.mark.asyncio
    async def test_name_is_derived_lazily_and_cached(self, adapter, page):
        node = (await adapter.find('button')).raw
        assert node.name == 'button'
        await node.identify()
        assert node.name == '<button> Component @ button'
        page.components['button'][0].xtype = 'changed'
        assert (await node.get_type()).raw == 'button'
        assert node.class_name == COMPONENT_TYPES['button']

    @pytest.mark.asyncio
    async def test_accessors(self, adapter):
        node = (await adapter.find('button')).raw
        text = await node.get_text()
        assert text.raw == 'Save'
        assert text.name == 'Text of <button> Component @ button'
        assert (await node.get_size()).raw == {'width': 120, 'height': 40}
        assert (await node.get_width()).raw == 120
        assert (await node.get_height()).raw == 40
        assert (await node.is_visible()).raw is True
        assert (await node.is_hidden()).raw is False
        assert (await node.is_enabled()).raw is True
        assert (await node.is_disabled()).raw is False

    @pytest.mark.asyncio
    async def test_state_changes(self, adapter, page):
        node = (await adapter.find('button', 'Cancel')).raw
        await node.enable()
        assert (await node.is_enabled()).raw is True
        await node.hide()
        assert (await node.is_hidden()).raw is True
        await node.show()
        await node.disable()
        assert page.components['button'][1].disabled is True

    @pytest.mark.asyncio
    async def test_values_and_data_are_json_encoded(self, adapter):
        field = (await adapter.find('textfield')).raw
        result = await field.set_value('Grace "Amazing" Hopper')
        assert result.raw == 'Grace "Amazing" Hopper'
        await field.set_data({'rank': 'admiral'})
        assert (await field.get_data()).raw == {'rank': 'admiral'}

    @pytest.mark.asyncio
    async def test_call_and_fire_event(self, adapter, page):
        node = (await adapter.find('button')).raw
        result = await node.call('setBadgeText', '3', {'animate': True})
        fake = page.components['button'][0]
        assert fake.calls == [('setBadgeText', ['3', {'animate': True}])]
        assert result.name == (
            '<button> Component @ button.setBadgeText("3",{"animate": true})'
        )
        fired = await node.fire_event('tap')
        assert fired.raw is True
        assert fake.events == ['tap']

    @pytest.mark.asyncio
    async def test_get_property(self, adapter, page):
        page.components['button'][0].props['ui'] = 'action'
        node = (await adapter.find('button')).raw
        prop = await node.get_property('ui')
        assert prop.raw == 'action'
        assert prop.name.endswith('.ui')


# =====================================================================
# 4. Input
# =====================================================================


class TestComponentInput:

    @pytest.mark.asyncio
    async def test_click(self, adapter, page):
        await adapter.click('button', 'Save')
        assert page.components['button'][0].clicks == 1

    @pytest.mark.asyncio
    async def test_type_appends_and_clear_resets(self, adapter, page):
        field = page.components['textfield'][0]
        await adapter.type_text('textfield', ' Lovelace')
        assert field.value == 'Ada Lovelace'
        await adapter.clear('textfield')
        assert field.value == ''


# =====================================================================
# 5. Waits
# =====================================================================


class TestComponentWaits:

    @pytest.mark.asyncio
    async def test_wait_for_exists(self, adapter):
        found = await adapter.wait_for_exists('button', 100)
        assert isinstance(found.raw, ComponentNode)

    @pytest.mark.asyncio
    async def test_wait_for_visible_times_out(self, context, adapter):
        found = await adapter.wait_for_visible('loadmask', 100)
        assert not found.exists
        assert context.log.items[-1].message == 'loadmask is visible within 100ms'

    @pytest.mark.asyncio
    async def test_wait_for_hidden(self, context, adapter):
        result = await adapter.wait_for_hidden('loadmask', 100)
        assert not result.exists
        assert context.log.fail_count == 0

    @pytest.mark.asyncio
    async def test_wait_for_having_text(self, adapter):
        found = await adapter.wait_for_having_text('button', 'Canc', 100)
        assert (await found.raw.get_id()).raw == 'cancel'


def test_factory_builds_component_adapter(context, page):
    adapter = create_adapter('component', context, page=page)
    assert isinstance(adapter, ComponentTreeAdapter)
    assert adapter.display_name == 'Component'
