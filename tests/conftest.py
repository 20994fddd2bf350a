"""Shared fixtures: the helper/inner-helper call scenario, as edges and as Java sources."""

import textwrap
from pathlib import Path

import pytest

from callchain.analyzer import AnalysisSnapshot
from callchain.graph import AnalysisIndex
from callchain.models import CallEdge, MethodRecord, MethodSignature, TypeDecl
from callchain.policy import TraversalPolicy

PKG = "com.hack.parser.test"
STRING = "java.lang.String"


def _sig(type_name: str, name: str, *params: str) -> MethodSignature:
    return MethodSignature(package=PKG, type_name=type_name, name=name, parameters=tuple(params))


@pytest.fixture
def sig():
    """Factory for signatures in the scenario package."""
    return _sig


def _helper_overloads(type_name):
    return tuple(_sig(type_name, "helperMethod", *p) for p in [(), ("int",), ("int", "int")])


def _inner_overloads(type_name):
    return tuple(
        _sig(type_name, "innerHelperMethod", *("int",) * n) for n in range(5)
    )


def scenario_types() -> dict[str, TypeDecl]:
    def decl(name, kind, methods, interfaces=()):
        return TypeDecl(
            name=f"{PKG}.{name}",
            kind=kind,
            file=f"com/hack/parser/test/{name}.java",
            interfaces=tuple(f"{PKG}.{i}" for i in interfaces),
            methods=methods,
        )

    types = [
        decl("Helper", "interface", _helper_overloads("Helper")),
        decl("HelperImpl", "class", _helper_overloads("HelperImpl"), ["Helper"]),
        decl("HelperImpl2", "class", _helper_overloads("HelperImpl2"), ["Helper"]),
        decl("InnerHelper", "interface", _inner_overloads("InnerHelper")),
        decl("InnerHelperImpl", "class", _inner_overloads("InnerHelperImpl"), ["InnerHelper"]),
        decl("InnerHelperImpl2", "class", _inner_overloads("InnerHelperImpl2"), ["InnerHelper"]),
        decl("InnerHelperImpl3", "class", _inner_overloads("InnerHelperImpl3"), ["InnerHelper"]),
        decl(
            "TestSample",
            "class",
            (
                _sig("TestSample", "main", f"{STRING}[]"),
                _sig("TestSample", "methodA"),
                _sig("TestSample", "methodB", "int"),
                _sig("TestSample", "methodC", STRING),
            ),
        ),
    ]
    return {t.name: t for t in types}


def scenario_edges() -> list[CallEdge]:
    inner2 = "InnerHelperImpl2"
    calls = [
        (_sig("TestSample", "main", f"{STRING}[]"), _sig("TestSample", "methodA")),
        (_sig("TestSample", "methodA"), _sig("TestSample", "methodB", "int")),
        (_sig("TestSample", "methodB", "int"), _sig("TestSample", "methodC", STRING)),
        (_sig("TestSample", "methodC", STRING), _sig("Helper", "helperMethod", "int")),
        (_sig("HelperImpl2", "helperMethod", "int"), _sig("InnerHelper", "innerHelperMethod", "int", "int")),
        (_sig(inner2, "innerHelperMethod"), _sig(inner2, "innerHelperMethod", "int", "int", "int")),
        (_sig(inner2, "innerHelperMethod", "int"), _sig(inner2, "innerHelperMethod", "int", "int", "int")),
        (_sig(inner2, "innerHelperMethod", "int", "int"), _sig(inner2, "innerHelperMethod", "int")),
        (
            _sig(inner2, "innerHelperMethod", "int", "int", "int"),
            _sig(inner2, "innerHelperMethod", "int", "int", "int", "int"),
        ),
    ]
    return [CallEdge(caller, callee) for caller, callee in calls]


def scenario_records() -> dict[MethodSignature, MethodRecord]:
    """Records for the concrete methods; interface methods are abstract."""
    records = {}
    for decl in scenario_types().values():
        for i, method in enumerate(decl.methods):
            start = 10 + i * 5
            if decl.is_interface:
                source, body = f"void {method.name}();", None
            else:
                body = "{\n    // work\n}"
                source = f"public void {method.name}() {body}"
            records[method] = MethodRecord(
                signature=method,
                file=decl.file,
                start_line=start,
                end_line=start + 3,
                source=source,
                body=body,
                comments=f"// {decl.name.rsplit('.', 1)[-1]}.{method.name}",
            )
    return records


@pytest.fixture
def target():
    """InnerHelperImpl2.innerHelperMethod(int, int, int, int)."""
    return _sig("InnerHelperImpl2", "innerHelperMethod", "int", "int", "int", "int")


@pytest.fixture
def snapshot():
    return AnalysisSnapshot(
        root="sample",
        scope="",
        records=scenario_records(),
        edges=scenario_edges(),
        types=scenario_types(),
        files=sorted({t.file for t in scenario_types().values()}),
    )


@pytest.fixture
def make_index(snapshot):
    """Build an index over the scenario snapshot with the given policy settings."""

    def build(**policy_fields) -> AnalysisIndex:
        return AnalysisIndex(snapshot, TraversalPolicy(**policy_fields))

    return build


@pytest.fixture
def index(make_index):
    return make_index()


@pytest.fixture
def graph_index():
    """Build an index over bare edges given as ``(caller, callee)`` signature pairs."""

    def build(pairs, **policy_fields) -> AnalysisIndex:
        snapshot = AnalysisSnapshot(
            root="graph",
            scope="",
            edges=[CallEdge(caller, callee) for caller, callee in pairs],
        )
        return AnalysisIndex(snapshot, TraversalPolicy(**policy_fields))

    return build


# =============================================================================
# Java sources
# =============================================================================

JAVA_SOURCES = {
    "Helper.java": """
        package com.hack.parser.test;

        public interface Helper {
            void helperMethod();

            void helperMethod(int a);

            void helperMethod(int a, int b);
        }
        """,
    "InnerHelper.java": """
        package com.hack.parser.test;

        public interface InnerHelper {
            void innerHelperMethod();

            void innerHelperMethod(int a);

            void innerHelperMethod(int a, int b);

            void innerHelperMethod(int a, int b, int c);

            void innerHelperMethod(int a, int b, int c, int d);
        }
        """,
    "HelperImpl.java": """
        package com.hack.parser.test;

        /**
         * A sample class to test the Java parser functionality
         */
        public class HelperImpl implements Helper {

            @Override
            public void helperMethod() {
                System.out.println("In helper method");
            }

            @Override
            public void helperMethod(int a) {
                System.out.println("In helper method"+a);
            }

            @Override
            public void helperMethod(int a, int b) {
                System.out.println("In helper method");
            }

        }
        """,
    "HelperImpl2.java": """
        package com.hack.parser.test;

        /**
         * A sample class to test the Java parser functionality
         */
        public class HelperImpl2 implements Helper {

            private InnerHelper innerHelper;


            @Override
            public void helperMethod() {
                System.out.println("In helper impl 2 method");
            }

            @Override
            public void helperMethod(int a) {
                System.out.println("In helper impl 2 method"+a);
                innerHelper.innerHelperMethod(8,9);
            }

            @Override
            public void helperMethod(int a, int b) {
                System.out.println("In helper impl 2 method");
            }

        }
        """,
    "InnerHelperImpl.java": """
        package com.hack.parser.test;

        import lombok.extern.slf4j.Slf4j;

        @Slf4j
        public class InnerHelperImpl implements InnerHelper {

            @Override
            public void innerHelperMethod() {

            }

            @Override
            public void innerHelperMethod(int a) {

            }

            @Override
            public void innerHelperMethod(int a, int b) {
                log.info("InnerHelperImpl innerHelperMethod(int a, int b) called");
            }

            @Override
            public void innerHelperMethod(int a, int b, int c) {

            }

            @Override
            public void innerHelperMethod(int a, int b, int c, int d) {

            }
        }
        """,
    "InnerHelperImpl2.java": """
        package com.hack.parser.test;

        import lombok.extern.slf4j.Slf4j;

        @Slf4j
        public class InnerHelperImpl2 implements InnerHelper {
            @Override
            public void innerHelperMethod() {
                innerHelperMethod(1,2,3);
            }

            @Override
            public void innerHelperMethod(int a) {
                innerHelperMethod(a,2,3);

            }

            @Override
            public void innerHelperMethod(int a, int b) {
                log.info("InnerHelperImpl2 innerHelperMethod(int a, int b) called");
                innerHelperMethod(a);
            }

            @Override
            public void innerHelperMethod(int a, int b, int c) {
                log.info("InnerHelperImpl2 innerHelperMethod(int a, int b, int c) called");
                innerHelperMethod(a, 2, 3, 4);
            }

            @Override
            public void innerHelperMethod(int a, int b, int c, int d) {
                int x = 1/a;
                log.info("InnerHelperImpl2 innerHelperMethod(int a, int b, int c, int d) called" + x);
            }
        }
        """,
    "InnerHelperImpl3.java": """
        package com.hack.parser.test;

        import lombok.extern.slf4j.Slf4j;

        @Slf4j
        public class InnerHelperImpl3 implements InnerHelper {
            @Override
            public void innerHelperMethod() {

            }

            @Override
            public void innerHelperMethod(int a) {

            }

            @Override
            public void innerHelperMethod(int a, int b) {
                log.info("InnerHelperImpl3 innerHelperMethod(int a, int b) called");
            }

            @Override
            public void innerHelperMethod(int a, int b, int c) {

            }

            @Override
            public void innerHelperMethod(int a, int b, int c, int d) {

            }
        }
        """,
    "TestSample.java": """
        package com.hack.parser.test;

        /**
         * A sample class to test the Java parser functionality
         */
        public class TestSample {

            private Helper helper;
            /**
             * Main method that starts the execution
             */
            public static void main(String[] args) {
                TestSample sample = new TestSample();
                sample.methodA();
            }

            /**
             * First method in the call chain
             */
            public void methodA() {
                System.out.println("In method A");
                methodB(42);
            }

            /**
             * Second method in the call chain
             */
            public void methodB(int value) {
                System.out.println("In method B with value: " + value);
                methodC("test");
            }

            /**
             * Third method in the call chain
             */
            public void methodC(String text) {
                System.out.println("In method C with text: " + text);

                // Create an object and call its method
        //        HelperImpl helperImpl = new HelperImpl();
                helper.helperMethod(9);
            }

        }
        """,
}

SOURCE_DIR = Path("src/main/java/com/hack/parser/test")


def write_sources(root: Path, sources: dict[str, str], subdir: Path = SOURCE_DIR) -> Path:
    directory = root / subdir
    directory.mkdir(parents=True, exist_ok=True)
    for name, text in sources.items():
        (directory / name).write_text(textwrap.dedent(text).lstrip("\n"), encoding="utf-8")
    return root


@pytest.fixture
def java_project(tmp_path):
    """The sample Java project under ``<tmp>/src/main/java``; returns the source root."""
    write_sources(tmp_path, JAVA_SOURCES)
    return tmp_path / "src" / "main" / "java"
