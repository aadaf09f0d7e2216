"""Tests for create_partitioner and create_part_store."""

import logging

import pytest

from partx import (
    PartConfigError,
    PartGraph,
    PartStore,
    Partitioner,
    create_part_store,
    create_partitioner,
    create_store,
    part,
)


class TestCreatePartitioner:
    def test_returns_reducer_and_enhancer(self):
        primitive = part("primitive", "value")
        partitioner = create_partitioner([primitive])
        assert isinstance(partitioner, Partitioner)
        store = create_store(partitioner.reducer, enhancer=partitioner.enhancer)
        assert isinstance(store, PartStore)
        assert store.get_state() == {"primitive": "value"}

    def test_logs_creation(self, caplog):
        a = part("a", 1)
        b = part("b", [part("c", 2)])
        with caplog.at_level(logging.INFO, logger="partx.partitioner"):
            create_partitioner([a, b])
        assert "Partitioner created: 2 top-level parts, 3 stateful parts" in caplog.text

    def test_rejects_select_parts(self):
        primitive = part("primitive", "value")
        select = part([primitive], lambda value: value)
        with pytest.raises(PartConfigError, match="Only stateful parts"):
            create_partitioner([primitive, select])

    def test_rejects_composed_children(self):
        child = part("child", 1)
        part("owner", [child])
        with pytest.raises(PartConfigError, match="pass the top-level part"):
            create_partitioner([child])

    def test_rejects_duplicate_names(self):
        with pytest.raises(PartConfigError, match="Two top-level parts"):
            create_partitioner([part("same", 1), part("same", 2)])

    def test_rejects_mixed_graphs(self):
        with pytest.raises(PartConfigError, match="same part graph"):
            create_partitioner([part("a", 1), part("b", 2, graph=PartGraph())])

    def test_custom_graph(self):
        graph = PartGraph()
        primitive = part("primitive", "value", graph=graph)
        upper = part([primitive], lambda value: value.upper(), graph=graph)
        store = create_part_store([primitive])
        store.dispatch(primitive("next"))
        assert store.get_state(upper) == "NEXT"


class TestCreatePartStore:
    def test_preloaded_state(self):
        primitive = part("primitive", "value")
        store = create_part_store([primitive], preloaded_state={"primitive": "loaded"})
        assert store.get_state(primitive) == "loaded"

    def test_other_reducer(self):
        primitive = part("primitive", "value")

        def todos(state, action):
            if state is None:
                return []
            if action.get("type") == "ADD_TODO":
                return [*state, action["text"]]
            return state

        store = create_part_store([primitive], other_reducer={"todos": todos})
        store.dispatch({"type": "ADD_TODO", "text": "write tests"})
        assert store.get_state() == {"todos": ["write tests"], "primitive": "value"}
