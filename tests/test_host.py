"""
PluginBridge 測試：以假的 VariableSource 與 QueueChannel 模擬 host 訊息。
"""
import json

from figma_git_sync.errors import NetworkError
from figma_git_sync.figma_reader import JsonFileVariableSource
from figma_git_sync.host import PluginBridge, QueueChannel

from conftest import STYLES, FakeSource

SAMPLE = FakeSource().data


class TestPluginBridge:

    def test_get_variables_reply(self):
        channel = QueueChannel()
        bridge = PluginBridge(FakeSource(), channel)
        reply = bridge.handle({"type": "get-variables"})

        assert reply["type"] == "variables-loaded"
        assert reply["variables"][0]["name"] == "colors"
        assert json.loads(reply["exportData"]) == {
            "colors": {"bg": {"$value": "#ffffff", "$type": "COLOR"}},
        }
        assert channel.replies() == [reply]

    def test_export_data_includes_styles(self):
        reply = PluginBridge(FakeSource(styles=STYLES), QueueChannel()).handle({"type": "get-variables"})
        tree = json.loads(reply["exportData"])
        assert tree["colors"]["brand/primary"]["$value"] == "#ff000080"
        assert tree["colors"]["bg"]["$value"] == "#ffffff"
        assert tree["typography"]["heading/h1"]["$type"] == "typography"
        assert tree["effects"]["shadow/card"]["$type"] == "shadow"

    def test_get_styles_reply(self):
        styles = [{"key": "s1", "name": "Heading"}]
        reply = PluginBridge(FakeSource(styles=styles), QueueChannel()).handle({"type": "get-styles"})
        assert reply == {"type": "styles-loaded", "styles": styles}

    def test_unknown_type(self):
        reply = PluginBridge(FakeSource(), QueueChannel()).handle({"type": "resize"})
        assert reply["type"] == "error"
        assert "resize" in reply["message"]

    def test_source_error_becomes_error_reply(self):
        source = FakeSource(error=NetworkError("Figma API unreachable"))
        reply = PluginBridge(source, QueueChannel()).handle({"type": "get-variables"})
        assert reply == {"type": "error", "message": "Figma API unreachable"}

    def test_pump_processes_queue_in_order(self):
        channel = QueueChannel()
        channel.send({"type": "get-styles"})
        channel.send({"type": "get-variables"})
        assert PluginBridge(FakeSource(), channel).pump() == 2
        assert [r["type"] for r in channel.replies()] == ["styles-loaded", "variables-loaded"]
        assert channel.receive() is None


class TestJsonFileSource:

    def test_reads_dump_and_styles(self, tmp_path):
        path = tmp_path / "dump.json"
        data = dict(SAMPLE, styles=[{"name": "Body"}])
        path.write_text(json.dumps(data), encoding="utf-8")
        source = JsonFileVariableSource(str(path))
        graph = source.get_variable_graph()
        assert graph.get("v").name == "bg"
        assert source.get_styles() == [{"name": "Body"}]

    def test_dump_without_styles(self, tmp_path):
        path = tmp_path / "dump.json"
        path.write_text(json.dumps(SAMPLE), encoding="utf-8")
        assert JsonFileVariableSource(str(path)).get_styles() == {}

    def test_dump_without_meta_wrapper(self, tmp_path):
        path = tmp_path / "dump.json"
        path.write_text(json.dumps(SAMPLE["meta"]), encoding="utf-8")
        graph = JsonFileVariableSource(str(path)).get_variable_graph()
        assert [c.name for c in graph.collections] == ["colors"]

    def test_bad_dump_reported_through_bridge(self, tmp_path):
        path = tmp_path / "dump.json"
        path.write_text("[]", encoding="utf-8")
        reply = PluginBridge(JsonFileVariableSource(str(path)), QueueChannel()).handle({"type": "get-variables"})
        assert reply["type"] == "error"
