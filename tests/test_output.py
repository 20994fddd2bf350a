"""Tests for report assembly and rendering."""

import json

from rich.console import Console

from callchain.models import CallTreeNode, CallTreeResult, ChainPath, ChainsResult, MethodSignature
from callchain.models.output import (
    ABSTRACT_BODY,
    UNAVAILABLE_BODY,
    UNKNOWN_FILE,
    AncestorsOutput,
    AnnotatedMethod,
    ChainsOutput,
    TreeOutput,
)
from callchain.output import format_chain_report, print_call_tree
from callchain.output.text import CHAIN_FOOTER, CHAIN_HEADER, SOURCE_UNAVAILABLE
from callchain.queries import AncestorsQuery, CallerChainsQuery, CallTreeQuery

EXTERNAL = MethodSignature("org.lib", "Client", "send", ("java.lang.String",))


class TestAnnotatedMethod:
    def test_known_method(self, index, sig):
        method = AnnotatedMethod.from_signature(sig("TestSample", "methodA"), index)
        assert method.available
        assert method.file == "com/hack/parser/test/TestSample.java"
        assert method.line == 15
        assert method.body == "{\n    // work\n}"
        assert method.comments == "// TestSample.methodA"

    def test_unavailable_marker(self, index):
        method = AnnotatedMethod.from_signature(EXTERNAL, index)
        assert not method.available
        assert method.file == UNKNOWN_FILE == "unknown"
        assert method.line == 0
        assert method.body == UNAVAILABLE_BODY
        assert method.to_dict()["body"] == "// Method body not available (external or unresolved)"

    def test_abstract_method_body(self, index, sig):
        method = AnnotatedMethod.from_signature(sig("Helper", "helperMethod", "int"), index)
        assert method.available
        assert method.body == ABSTRACT_BODY

    def test_method_entry_keys(self, index, sig):
        entry = AnnotatedMethod.from_signature(sig("TestSample", "methodA"), index).to_method_entry()
        assert set(entry) == {"name", "signature", "body", "comments"}
        assert entry["name"] == "methodA"
        assert entry["signature"] == "com.hack.parser.test.TestSample.methodA()"


class TestChainReport:
    def test_chains_are_top_down(self, index, target):
        output = ChainsOutput.from_result(CallerChainsQuery(index).execute(target), index)
        first = output.chains[0]
        assert first[-1].signature == target
        assert first[0].name == "innerHelperMethod"

    def test_text_format(self, index, sig):
        a, b = sig("TestSample", "methodA"), sig("TestSample", "methodB", "int")
        result = ChainsResult(target=b, chains=[ChainPath((b, a))])
        text = format_chain_report(ChainsOutput.from_result(result, index))

        assert text.splitlines() == [
            CHAIN_HEADER,
            "",
            "--- com.hack.parser.test.TestSample.methodA() ---",
            "// TestSample.methodA",
            "public void methodA() {",
            "    // work",
            "}",
            "",
            "--- com.hack.parser.test.TestSample.methodB(int) ---",
            "// TestSample.methodB",
            "public void methodB() {",
            "    // work",
            "}",
            CHAIN_FOOTER,
        ]

    def test_text_format_without_source(self, index, sig):
        a = sig("TestSample", "methodA")
        result = ChainsResult(target=a, chains=[ChainPath((a, EXTERNAL))])
        text = format_chain_report(ChainsOutput.from_result(result, index))
        assert "--- org.lib.Client.send(java.lang.String) ---\n" + SOURCE_UNAVAILABLE in text

    def test_chains_json(self, index, target):
        output = ChainsOutput.from_result(CallerChainsQuery(index).execute(target), index)
        data = json.loads(json.dumps(output.to_dict()))
        assert len(data["chains"]) == 5
        assert data["target"]["signature"].endswith("innerHelperMethod(int, int, int, int)")
        assert "truncated" not in data


class TestAncestorsReport:
    def test_ancestors_output(self, index, target):
        output = AncestorsOutput.from_result(AncestorsQuery(index).execute(target), index)
        data = output.to_dict()
        assert data["target"]["name"] == "innerHelperMethod"
        assert len(data["ancestors"]) == 11


class TestTreeReport:
    def test_synthetic_root(self, index, target):
        output = TreeOutput.from_result(CallTreeQuery(index).execute(target), index)
        data = output.to_dict()
        tree = data["dag_tree"]
        assert tree["method"] == "ROOT"
        assert tree["file"] == "unknown"
        assert tree["line"] == 0
        assert [c["method"] for c in tree["children"]] == ["innerHelperMethod", "main"]

    def test_node_shape(self, index, target):
        output = TreeOutput.from_result(CallTreeQuery(index).execute(target), index)
        main = output.to_dict()["dag_tree"]["children"][1]
        assert set(main) == {"method", "file", "line", "children"}
        assert main["file"] == "com/hack/parser/test/TestSample.java"
        assert main["line"] == 10

    def test_single_entry_is_the_tree_root(self, index, sig):
        main, a = sig("TestSample", "main", "java.lang.String[]"), sig("TestSample", "methodA")
        result = CallTreeResult(target=a, root=CallTreeNode(None, [CallTreeNode(main, [CallTreeNode(a)])]))
        data = TreeOutput.from_result(result, index).to_dict()
        assert data["dag_tree"]["method"] == "main"
        assert data["dag_tree"]["children"][0]["method"] == "methodA"

    def test_methods_are_distinct(self, index, target):
        output = TreeOutput.from_result(CallTreeQuery(index).execute(target), index)
        signatures = [m["signature"] for m in output.to_dict()["methods"]]
        assert len(signatures) == len(set(signatures))
        assert "com.hack.parser.test.TestSample.methodC(java.lang.String)" in signatures

    def test_unknown_method_in_tree(self, index, sig):
        main = sig("TestSample", "main", "java.lang.String[]")
        result = CallTreeResult(target=EXTERNAL, root=CallTreeNode(None, [CallTreeNode(main, [CallTreeNode(EXTERNAL)])]))
        data = TreeOutput.from_result(result, index).to_dict()
        leaf = data["dag_tree"]["children"][0]
        assert leaf == {"method": "send", "file": "unknown", "line": 0, "children": []}
        assert data["methods"][1]["body"] == UNAVAILABLE_BODY

    def test_rich_tree_rendering(self, index, target):
        output = TreeOutput.from_result(CallTreeQuery(index).execute(target), index)
        console = Console(record=True, width=200)
        print_call_tree(output, console)
        text = console.export_text()
        assert "ROOT" in text
        assert "com.hack.parser.test.TestSample.methodC(java.lang.String)" in text
