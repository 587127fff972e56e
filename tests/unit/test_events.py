"""Tests for listeners, message sinks and error formatting."""

import pytest

from migrate_idmap.exceptions import IdMapError
from migrate_idmap.idmap.events import (
    AuditLogListener,
    EventDispatcher,
    IdMapListener,
    IdMapMessageEvent,
)
from migrate_idmap.idmap.messages import LogMessageSink, MessageSink
from migrate_idmap.idmap.models import MessageLevel
from migrate_idmap.idmap.store import SqlIdMap


class TestEventDispatcher:
    """Tests for EventDispatcher."""

    def test_listeners_called_in_order(self, node_identity):
        calls = []

        class Named(IdMapListener):
            def __init__(self, name):
                self.name = name

            def on_message_saved(self, event):
                calls.append(self.name)

        dispatcher = EventDispatcher([Named("first")])
        dispatcher.add_listener(Named("second"))
        dispatcher.message_saved(
            IdMapMessageEvent(node_identity, {"nid": 1}, "text", MessageLevel.ERROR)
        )

        assert calls == ["first", "second"]

    def test_remove_listener(self):
        listener = IdMapListener()
        dispatcher = EventDispatcher([listener])
        dispatcher.remove_listener(listener)
        assert dispatcher.listeners == []

    def test_base_listener_ignores_events(self, id_map):
        id_map.events.add_listener(IdMapListener())
        id_map.save_id_mapping({"nid": 1}, {"id": 1})
        id_map.save_message({"nid": 1}, "text")
        id_map.delete({"nid": 1})

    def test_audit_log_listener(self, node_identity, engine):
        id_map = SqlIdMap(node_identity, engine, listeners=[AuditLogListener()])
        id_map.save_id_mapping({"nid": 1}, {"id": 1})
        id_map.save_message({"nid": 1}, "text", MessageLevel.NOTICE)
        id_map.delete({"nid": 1})

        assert id_map.processed_count() == 0


class TestMessageSinks:
    """Tests for message sinks."""

    def test_log_sink_is_a_message_sink(self):
        assert isinstance(LogMessageSink(), MessageSink)

    def test_default_sink_logs(self, node_identity, engine):
        id_map = SqlIdMap(node_identity, engine)
        assert isinstance(id_map.message, LogMessageSink)
        assert id_map.save_id_mapping({"nid": None}, {"id": 1}) is False

    @pytest.mark.parametrize("level", ["error", "warning", "status", "notice"])
    def test_log_sink_levels(self, level):
        LogMessageSink("d7_node").display("text", level)

    def test_set_message_sink(self, id_map, sink):
        replacement = type(sink)()
        id_map.set_message_sink(replacement)
        id_map.save_id_mapping({"nid": None}, {"id": 1})

        assert sink.messages == []
        assert len(replacement.messages) == 1


class TestErrors:
    """Tests for error formatting."""

    def test_context_in_message(self):
        error = IdMapError("broken", migration_id="d7_node", operation="delete")
        assert str(error) == "[d7_node:delete] broken"

    def test_without_context(self):
        assert str(IdMapError("broken")) == "broken"

