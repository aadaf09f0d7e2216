"""Tests for the part store: reads, dispatch and part subscriptions."""

import logging

import pytest

from partx import (
    InvalidListenerError,
    PartError,
    PartGraph,
    PartStore,
    UnknownPartError,
    create_part_store,
    create_partitioner,
    create_store,
    part,
)


def _spy():
    calls = []

    def listener():
        calls.append(1)

    listener.calls = calls
    return listener


class TestReads:
    def test_whole_state(self):
        primitive = part("primitive", "value")
        store = create_part_store([primitive])
        assert isinstance(store, PartStore)
        assert store.get_state() == {"primitive": "value"}

    def test_stateful_part(self):
        leaf = part("leaf", 1)
        inner = part("inner", [leaf])
        outer = part("outer", [inner])
        store = create_part_store([outer])
        assert store.get_state(leaf) == 1
        assert store.get_state(inner) == {"leaf": 1}
        assert store.get_state(outer) == {"inner": {"leaf": 1}}

    def test_select_part(self):
        primitive = part("primitive", "value")
        upper = part([primitive], lambda value: value.upper())
        store = create_part_store([primitive])
        assert store.get_state(upper) == "VALUE"

    def test_non_part_rejected(self):
        store = create_part_store([part("primitive", "value")])
        with pytest.raises(PartError, match="Expected a part"):
            store.get_state("primitive")

    def test_update_part_has_no_value(self):
        primitive = part("primitive", "value")
        update = part(None, lambda dispatch, get_state: None)
        store = create_part_store([primitive])
        with pytest.raises(PartError, match="write-only"):
            store.get_state(update)

    def test_part_from_another_graph(self):
        primitive = part("primitive", "value")
        graph = PartGraph()
        foreign = part([part("x", 1, graph=graph)], lambda x: x, graph=graph)
        store = create_part_store([primitive])
        with pytest.raises(PartError, match="another part graph"):
            store.get_state(foreign)

    def test_base_store_attributes_are_delegated(self):
        primitive = part("primitive", "value")
        store = create_part_store([primitive])
        assert callable(store.replace_reducer)
        with pytest.raises(AttributeError):
            store._missing


class TestDispatch:
    def test_updates_state(self):
        primitive = part("primitive", "value")
        store = create_part_store([primitive])
        store.dispatch(primitive("next value"))
        assert store.get_state(primitive) == "next value"

    def test_version(self):
        primitive = part("primitive", "value")
        store = create_part_store([primitive])
        assert store.version == 0
        store.dispatch(primitive("next"))
        assert store.version == 1
        assert store.get_version() == 1
        store.dispatch(primitive("next"))
        assert store.version == 1

    def test_equal_value_notifies_nobody(self):
        primitive = part("primitive", "value")
        store = create_part_store([primitive])
        state = store.get_state()
        listener = _spy()
        part_listener = _spy()
        store.subscribe(listener)
        store.subscribe_to_part(primitive, part_listener)
        store.dispatch(primitive("value"))
        assert store.get_state() is state
        assert listener.calls == []
        assert part_listener.calls == []

    def test_unknown_part(self):
        known = part("known", 1)
        unknown = part("unknown", 2)
        store = create_part_store([known])
        with pytest.raises(UnknownPartError, match="not found"):
            store.dispatch(unknown(3))

    def test_thunk_gets_part_aware_get_state(self):
        count = part("count", 1)
        store = create_part_store([count])

        def double(dispatch, get_state):
            return dispatch(count(get_state(count) * 2))

        store.dispatch(double)
        assert store.get_state(count) == 2

    def test_set_value(self):
        count = part("count", 1)
        store = create_part_store([count])
        store.set(count, 5)
        assert store.get_state(count) == 5

    def test_set_functional(self):
        count = part("count", 1)
        store = create_part_store([count])
        store.set(count, lambda value: value + 1)
        assert store.get_state(count) == 2

    def test_set_select_part_rejected(self):
        count = part("count", 1)
        doubled = part([count], lambda value: value * 2)
        store = create_part_store([count])
        with pytest.raises(PartError, match="cannot be updated"):
            store.set(doubled, 4)

    def test_proxy_part(self):
        first = part("first", "Ada")
        last = part("last", "Lovelace")

        def set_full_name(dispatch, get_state, value):
            first_name, last_name = value.split(" ")
            dispatch(first(first_name))
            dispatch(last(last_name))

        full_name = part([first, last], lambda f, l: f"{f} {l}", set_full_name)
        store = create_part_store([first, last])
        assert store.get_state(full_name) == "Ada Lovelace"
        store.dispatch(full_name("Grace Hopper"))
        assert store.get_state(first) == "Grace"
        assert store.get_state(full_name) == "Grace Hopper"
        store.set(full_name, "Alan Turing")
        assert store.get_state(last) == "Turing"

    def test_update_part(self):
        count = part("count", 0)
        reset = part(None, lambda dispatch, get_state, value=0: dispatch(count(value)))
        store = create_part_store([count])
        store.dispatch(count(4))
        store.dispatch(reset())
        assert store.get_state(count) == 0
        store.set(reset, 9)
        assert store.get_state(count) == 9

    def test_non_part_action_with_other_reducer(self):
        primitive = part("primitive", "value")

        def counter(state, action):
            if state is None:
                return 0
            return state + 1 if action.get("type") == "INCREMENT" else state

        store = create_part_store([primitive], other_reducer={"count": counter})
        listener = _spy()
        part_listener = _spy()
        store.subscribe(listener)
        store.subscribe_to_part(primitive, part_listener)
        store.dispatch({"type": "INCREMENT"})
        assert store.get_state() == {"count": 1, "primitive": "value"}
        assert listener.calls == [1]
        assert part_listener.calls == []

    def test_unknown_part_logged(self, caplog):
        known = part("known", 1)
        unknown = part("unknown", 2)
        store = create_part_store([known])
        with caplog.at_level(logging.DEBUG, logger="partx.enhancer"):
            with pytest.raises(UnknownPartError):
                store.dispatch(unknown(3))
        assert "unknown part id" in caplog.text


class TestSubscribeToPart:
    def test_primitive(self):
        primitive = part("primitive", "value")
        other = part("other", 0)
        store = create_part_store([primitive, other])
        listener = _spy()
        store.subscribe_to_part(primitive, listener)
        store.dispatch(primitive("next"))
        store.dispatch(other(1))
        assert listener.calls == [1]

    def test_store_listeners_run_before_part_listeners(self):
        primitive = part("primitive", "value")
        store = create_part_store([primitive])
        order = []
        store.subscribe_to_part(primitive, lambda: order.append("part"))
        store.subscribe(lambda: order.append("store"))
        store.dispatch(primitive("next"))
        assert order == ["store", "part"]

    def test_composed_owner_notified_by_child(self):
        child = part("child", 1)
        owner = part("owner", [child])
        store = create_part_store([owner])
        listener = _spy()
        store.subscribe_to_part(owner, listener)
        store.dispatch(child(2))
        assert listener.calls == [1]
        assert store.get_state(owner) == {"child": 2}

    def test_child_notified_by_composed_owner(self):
        child = part("child", 1)
        sibling = part("sibling", 1)
        owner = part("owner", [child, sibling])
        store = create_part_store([owner])
        child_listener = _spy()
        sibling_listener = _spy()
        store.subscribe_to_part(child, child_listener)
        store.subscribe_to_part(sibling, sibling_listener)
        store.dispatch(owner({"child": 5}))
        assert store.get_state(owner) == {"child": 5, "sibling": 1}
        assert child_listener.calls == [1]
        assert sibling_listener.calls == [1]

    def test_select_notified_by_source(self):
        primitive = part("primitive", "value")
        other = part("other", 0)
        upper = part([primitive], lambda value: value.upper())
        store = create_part_store([primitive, other])
        listener = _spy()
        store.subscribe_to_part(upper, listener)
        store.dispatch(primitive("next"))
        store.dispatch(other(1))
        assert listener.calls == [1]

    def test_select_of_select_notified_by_leaf(self):
        primitive = part("primitive", "value")
        upper = part([primitive], lambda value: value.upper())
        exclaimed = part([upper], lambda value: f"{value}!")
        store = create_part_store([primitive])
        listener = _spy()
        store.subscribe_to_part(exclaimed, listener)
        store.dispatch(primitive("next"))
        assert listener.calls == [1]
        assert store.get_state(exclaimed) == "NEXT!"

    def test_select_over_owner_notified_by_nested_leaf(self):
        leaf = part("leaf", 1)
        inner = part("inner", [leaf])
        outer = part("outer", [inner])
        over_outer = part([outer], lambda value: value["inner"]["leaf"])
        store = create_part_store([outer])
        listener = _spy()
        store.subscribe_to_part(over_outer, listener)
        store.dispatch(leaf(2))
        assert listener.calls == [1]
        assert store.get_state(over_outer) == 2

    def test_whole_descendancy_tree(self):
        a = part("a", 1)
        b = part("b", 2)
        ab = part("ab", [a, b])
        c = part("c", 3)
        root = part("root", [ab, c])
        select_a = part([a], lambda value: value)
        select_ab = part([ab], lambda value: value)
        select_c = part([c], lambda value: value)
        store = create_part_store([root])

        listeners = {}
        for name, target in {
            "a": a,
            "b": b,
            "ab": ab,
            "c": c,
            "root": root,
            "select_a": select_a,
            "select_ab": select_ab,
            "select_c": select_c,
        }.items():
            listeners[name] = _spy()
            store.subscribe_to_part(target, listeners[name])

        store.dispatch(a(10))
        notified = {name for name, listener in listeners.items() if listener.calls}
        assert notified == {"a", "ab", "root", "select_a", "select_ab"}

        for listener in listeners.values():
            listener.calls.clear()
        store.dispatch(root({"c": 30}))
        notified = {name for name, listener in listeners.items() if listener.calls}
        assert notified == set(listeners)

    def test_deep_nesting_keeps_unrelated_identity(self):
        leaf = part("leaf", 0)
        level = leaf
        for depth in range(5):
            sibling = part(f"sibling{depth}", {"depth": depth})
            level = part(f"level{depth}", [level, sibling])
        top = level
        store = create_part_store([top])
        before = store.get_state()
        listener = _spy()
        store.subscribe_to_part(leaf, listener)

        store.dispatch(leaf(1))
        after = store.get_state()
        assert store.get_state(leaf) == 1
        assert after is not before
        assert listener.calls == [1]

        node_before, node_after = before["level4"], after["level4"]
        for depth in range(4, 0, -1):
            assert node_after is not node_before
            sibling_key = f"sibling{depth}"
            assert node_after[sibling_key] is node_before[sibling_key]
            node_before = node_before[f"level{depth - 1}"]
            node_after = node_after[f"level{depth - 1}"]
        assert node_after["leaf"] == 1
        assert node_after["sibling0"] is node_before["sibling0"]

    def test_unbound_select_notified_on_every_change(self):
        a = part("a", 1)
        b = part("b", 2)
        total = part(lambda get_state: get_state(a) + get_state(b))
        store = create_part_store([a, b])
        listener = _spy()
        store.subscribe_to_part(total, listener)
        store.dispatch(a(5))
        store.dispatch(b(5))
        assert listener.calls == [1, 1]
        assert store.get_state(total) == 10

    def test_non_callable_listener(self):
        primitive = part("primitive", "value")
        store = create_part_store([primitive])
        with pytest.raises(InvalidListenerError):
            store.subscribe_to_part(primitive, None)
        with pytest.raises(InvalidListenerError):
            store.subscribe(42)

    def test_unsubscribe_is_idempotent(self):
        primitive = part("primitive", "value")
        store = create_part_store([primitive])
        listener = _spy()
        unsubscribe = store.subscribe_to_part(primitive, listener)
        store.subscribe_to_part(primitive, listener)
        unsubscribe()
        unsubscribe()
        store.dispatch(primitive("next"))
        assert listener.calls == [1]

    def test_unsubscribe_during_notify_keeps_pass(self):
        primitive = part("primitive", "value")
        store = create_part_store([primitive])
        log = []
        unsubscribers = []

        def first():
            log.append("first")
            for unsubscribe in unsubscribers:
                unsubscribe()

        def second():
            log.append("second")

        store.subscribe_to_part(primitive, first)
        unsubscribers.append(store.subscribe_to_part(primitive, second))
        store.dispatch(primitive("next"))
        assert log == ["first", "second"]

        store.dispatch(primitive("again"))
        assert log == ["first", "second", "first"]

    def test_subscribe_during_notify_waits_for_next_pass(self):
        primitive = part("primitive", "value")
        store = create_part_store([primitive])
        late = _spy()

        def first():
            store.subscribe_to_part(primitive, late)

        store.subscribe_to_part(primitive, first)
        store.dispatch(primitive("next"))
        assert late.calls == []
        store.dispatch(primitive("again"))
        assert late.calls == [1]

    def test_dispatch_from_listener(self):
        count = part("count", 0)
        doubled = part("doubled", 0)
        store = create_part_store([count, doubled])
        store.subscribe_to_part(count, lambda: store.set(doubled, store.get_state(count) * 2))
        listener = _spy()
        store.subscribe_to_part(doubled, listener)
        store.dispatch(count(3))
        assert store.get_state(doubled) == 6
        assert listener.calls == [1]


class TestReplaceReducer:
    def test_bumps_version_and_notifies(self):
        primitive = part("primitive", "value")
        store = create_part_store(
            [primitive], other_reducer={"extra": lambda state, action: 0 if state is None else state}
        )
        whole = part(lambda get_state: get_state())
        listener = _spy()
        part_listener = _spy()
        store.subscribe(listener)
        store.subscribe_to_part(primitive, part_listener)
        assert store.get_state(whole)["extra"] == 0

        replacement = create_partitioner(
            [primitive], other_reducer={"extra": lambda state, action: 99}
        ).reducer
        store.replace_reducer(replacement)
        assert store.version == 1
        assert store.get_state(whole) == {"extra": 99, "primitive": "value"}
        assert listener.calls == [1]
        assert part_listener.calls == [1]

    def test_unchanged_state_notifies_nobody(self):
        primitive = part("primitive", "value")
        reducer, enhancer = create_partitioner([primitive])
        store = create_store(reducer, enhancer=enhancer)
        listener = _spy()
        store.subscribe(listener)
        store.replace_reducer(reducer)
        assert store.version == 0
        assert listener.calls == []


class TestNotifier:
    def test_custom_notifier(self):
        primitive = part("primitive", "value")
        queued = []
        store = create_part_store([primitive], notifier=queued.append)
        listener = _spy()
        store.subscribe_to_part(primitive, listener)
        store.dispatch(primitive("next"))
        assert listener.calls == []
        assert len(queued) == 1
        queued.pop()()
        assert listener.calls == [1]

    def test_dirty_ids_collected_until_notify(self):
        a = part("a", 0)
        b = part("b", 0)
        queued = []
        reducer, enhancer = create_partitioner([a, b], notifier=queued.append)
        store = create_store(reducer, enhancer=enhancer)
        a_listener = _spy()
        b_listener = _spy()
        store.subscribe_to_part(a, a_listener)
        store.subscribe_to_part(b, b_listener)
        store.dispatch(a(1))
        store.dispatch(b(1))
        queued[0]()
        assert a_listener.calls == [1]
        assert b_listener.calls == [1]
        queued[1]()
        assert a_listener.calls == [1]
        assert b_listener.calls == [1]
