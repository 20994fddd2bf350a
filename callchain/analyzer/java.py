"""Java source analyzer built on tree-sitter.

Three passes over the source tree:

1. parse every ``*.java`` file and collect packages, imports, types
   (nested ones included), fields and method declarations;
2. qualify type names and build method signatures and records;
3. resolve each method invocation to a declared method and emit call edges.

Resolution is static and best effort. A call whose receiver type or target
declaration cannot be determined produces no edge; the loss is logged at
debug level and the call graph under-approximates the program there.
"""

import fnmatch
import logging
import re
import textwrap
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

import tree_sitter_java
from tree_sitter import Language, Node, Parser

from ..errors import InvalidArgumentsError, NoSourceFilesError
from ..models import CallEdge, MethodRecord, MethodSignature, TypeDecl
from .base import AnalysisSnapshot

logger = logging.getLogger(__name__)

JAVA_LANGUAGE = Language(tree_sitter_java.language())

PRIMITIVES = frozenset(
    {"byte", "short", "int", "long", "float", "double", "char", "boolean", "void"}
)

BOXED = {
    "byte": "java.lang.Byte",
    "short": "java.lang.Short",
    "int": "java.lang.Integer",
    "long": "java.lang.Long",
    "float": "java.lang.Float",
    "double": "java.lang.Double",
    "char": "java.lang.Character",
    "boolean": "java.lang.Boolean",
}
UNBOXED = {boxed: primitive for primitive, boxed in BOXED.items()}

WIDENING = {
    "byte": ("short", "int", "long", "float", "double"),
    "short": ("int", "long", "float", "double"),
    "char": ("int", "long", "float", "double"),
    "int": ("long", "float", "double"),
    "long": ("float", "double"),
    "float": ("double",),
}
NUMERIC_RANK = ("byte", "short", "char", "int", "long", "float", "double")

# java.lang types resolvable without an import
JAVA_LANG = frozenset({
    "Object", "String", "StringBuilder", "StringBuffer", "CharSequence",
    "Integer", "Long", "Short", "Byte", "Double", "Float", "Character",
    "Boolean", "Number", "Void", "Math", "System", "Thread", "Runnable",
    "Iterable", "Comparable", "Cloneable", "AutoCloseable", "Class", "Enum",
    "Record", "Throwable", "Exception", "RuntimeException", "Error",
    "IllegalArgumentException", "IllegalStateException",
    "NullPointerException", "UnsupportedOperationException",
    "IndexOutOfBoundsException", "ArithmeticException", "ClassCastException",
    "InterruptedException", "Override", "Deprecated", "SuppressWarnings",
    "FunctionalInterface",
})

TYPE_KINDS = {
    "class_declaration": "class",
    "interface_declaration": "interface",
    "enum_declaration": "enum",
    "record_declaration": "record",
}

OBJECT = "java.lang.Object"
STRING = "java.lang.String"
NULL = "null"

COMPARISON_OPERATORS = frozenset({"==", "!=", "<", ">", "<=", ">=", "&&", "||", "instanceof"})

_ANNOTATION = re.compile(r"@[\w.]+(\([^)]*\))?\s*")


def _text(node: Optional[Node]) -> str:
    return node.text.decode("utf-8") if node is not None else ""


def _named_children(node: Node) -> list[Node]:
    return [c for c in node.named_children if not c.type.endswith("comment")]


def _walk(node: Node) -> Iterator[Node]:
    """Pre-order traversal of ``node`` and its descendants."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def _erase(type_text: str) -> str:
    """Drop generic arguments, annotations and whitespace from a type."""
    out: list[str] = []
    depth = 0
    for ch in _ANNOTATION.sub("", type_text):
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
        elif depth == 0 and not ch.isspace():
            out.append(ch)
    return "".join(out)


def _split_suffix(type_text: str) -> tuple[str, str]:
    """Split ``Foo[][]`` / ``Foo...`` into the base name and its suffix."""
    for marker in ("[", "..."):
        idx = type_text.find(marker)
        if idx >= 0:
            return type_text[:idx], type_text[idx:]
    return type_text, ""


def _format_comment(text: str) -> str:
    lines = [line.strip() for line in text.splitlines()]
    return "\n".join(
        f" {line}" if i > 0 and line.startswith("*") else line for i, line in enumerate(lines)
    )


@dataclass
class _Unit:
    """One parsed compilation unit."""

    path: str  # relative, POSIX separators
    lines: list[str]
    package: str = ""
    imports: dict[str, str] = field(default_factory=dict)
    wildcards: list[str] = field(default_factory=list)
    static_imports: dict[str, str] = field(default_factory=dict)  # member -> type
    static_wildcards: list[str] = field(default_factory=list)
    top_level: dict[str, "_TypeInfo"] = field(default_factory=dict)


@dataclass
class _TypeInfo:
    name: str  # qualified
    simple: str
    path: str  # dotted path inside the package
    kind: str
    node: Node
    unit: _Unit
    outer: Optional["_TypeInfo"] = None
    type_params: frozenset[str] = frozenset()
    is_abstract: bool = False
    raw_superclass: Optional[str] = None
    raw_interfaces: list[str] = field(default_factory=list)
    superclass: Optional[str] = None
    interfaces: list[str] = field(default_factory=list)
    raw_fields: dict[str, str] = field(default_factory=dict)
    fields: dict[str, Optional[str]] = field(default_factory=dict)
    nested: dict[str, "_TypeInfo"] = field(default_factory=dict)
    methods: list["_MethodDecl"] = field(default_factory=list)

    @property
    def supertypes(self) -> list[str]:
        direct = [self.superclass] if self.superclass else []
        return direct + self.interfaces


@dataclass
class _MethodDecl:
    name: str
    node: Node
    owner: _TypeInfo
    type_params: frozenset[str] = frozenset()
    raw_params: list[tuple[str, str]] = field(default_factory=list)  # (type, name)
    raw_return: str = "void"
    signature: Optional[MethodSignature] = None
    return_type: Optional[str] = None
    param_types: dict[str, Optional[str]] = field(default_factory=dict)
    resolved: bool = True


class JavaSourceAnalyzer:
    """Static analyzer producing an AnalysisSnapshot from Java sources."""

    def __init__(self, scope: str = "", exclude: tuple[str, ...] = (), encoding: str = "utf-8"):
        """Initialize the analyzer.

        Args:
            scope: Package prefix; only methods of types under it are scanned
                for calls.
            exclude: Glob patterns matched against root-relative paths.
            encoding: Source file encoding.
        """
        self.scope = scope
        self.exclude = tuple(exclude)
        self.encoding = encoding
        self._parser = Parser(JAVA_LANGUAGE)
        self._types: dict[str, _TypeInfo] = {}
        self._supertype_cache: dict[str, frozenset[str]] = {}

    # --- Pass 1: discovery and collection ---

    def analyze(self, root: Path) -> AnalysisSnapshot:
        root = Path(root)
        if not root.is_dir():
            raise InvalidArgumentsError(f"Source root is not a directory: {root}")

        self._types = {}
        self._supertype_cache = {}

        paths = self._discover(root)
        if not paths:
            raise NoSourceFilesError(root)

        files: list[str] = []
        skipped: list[str] = []
        for path in paths:
            rel = path.relative_to(root).as_posix()
            unit = self._parse_file(path, rel)
            if unit is None:
                skipped.append(rel)
                continue
            files.append(rel)

        # Pass 2
        records = self._build_records()
        # Pass 3
        edges = self._resolve_calls()

        types = {
            info.name: TypeDecl(
                name=info.name,
                kind=info.kind,
                file=info.unit.path,
                superclass=info.superclass,
                interfaces=tuple(info.interfaces),
                methods=tuple(m.signature for m in info.methods if m.signature is not None),
                is_abstract=info.is_abstract,
            )
            for info in self._types.values()
        }

        logger.info(
            f"Analyzed {len(files)} files ({len(skipped)} skipped): "
            f"{len(types)} types, {len(records)} methods, {len(edges)} call edges"
        )
        return AnalysisSnapshot(
            root=str(root),
            scope=self.scope,
            records=records,
            edges=edges,
            types=types,
            files=files,
            skipped_files=skipped,
        )

    def _discover(self, root: Path) -> list[Path]:
        paths = []
        for path in sorted(root.rglob("*.java")):
            rel = path.relative_to(root).as_posix()
            if any(fnmatch.fnmatch(rel, pattern) for pattern in self.exclude):
                logger.debug(f"Excluded {rel}")
                continue
            if path.is_file():
                paths.append(path)
        return paths

    def _parse_file(self, path: Path, rel: str) -> Optional[_Unit]:
        try:
            text = path.read_bytes().decode(self.encoding)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Skipping unreadable file {rel}: {e}")
            return None

        tree = self._parser.parse(text.encode("utf-8"))
        if tree.root_node.has_error:
            logger.warning(f"Skipping {rel}: syntax errors")
            return None

        unit = _Unit(path=rel, lines=text.splitlines())
        for child in tree.root_node.named_children:
            if child.type == "package_declaration":
                unit.package = _erase(_text(_named_children(child)[0]))
            elif child.type == "import_declaration":
                self._collect_import(child, unit)
            elif child.type in TYPE_KINDS:
                info = self._collect_type(child, unit, outer=None)
                unit.top_level[info.simple] = info
        return unit

    def _collect_import(self, node: Node, unit: _Unit):
        body = _text(node).strip()[len("import"):].rstrip(";").strip()
        is_static = body.startswith("static")
        if is_static:
            body = body[len("static"):]
        body = "".join(body.split())

        if body.endswith(".*"):
            target = body[:-2]
            (unit.static_wildcards if is_static else unit.wildcards).append(target)
        elif is_static:
            owner, _, member = body.rpartition(".")
            unit.static_imports[member] = owner
        else:
            unit.imports[body.rsplit(".", 1)[-1]] = body

    def _collect_type(self, node: Node, unit: _Unit, outer: Optional[_TypeInfo]) -> _TypeInfo:
        """Collect a type declaration and everything nested in its body."""
        simple = _text(node.child_by_field_name("name"))
        path = f"{outer.path}.{simple}" if outer else simple
        info = _TypeInfo(
            name=f"{unit.package}.{path}" if unit.package else path,
            simple=simple,
            path=path,
            kind=TYPE_KINDS[node.type],
            node=node,
            unit=unit,
            outer=outer,
            type_params=self._type_parameters(node),
        )

        for child in node.children:
            if child.type == "modifiers":
                info.is_abstract = any(c.type == "abstract" for c in child.children)
            elif child.type == "superclass":
                info.raw_superclass = _erase(_text(_named_children(child)[0]))
            elif child.type in ("super_interfaces", "extends_interfaces"):
                for type_list in _named_children(child):
                    info.raw_interfaces.extend(_erase(_text(t)) for t in _named_children(type_list))

        if info.name in self._types:
            logger.debug(f"Duplicate type {info.name} in {unit.path}; keeping the first")
        else:
            self._types[info.name] = info

        if info.kind == "record":
            params = node.child_by_field_name("parameters")
            for component in _named_children(params) if params else []:
                name = _text(component.child_by_field_name("name"))
                info.raw_fields[name] = _erase(_text(component.child_by_field_name("type")))

        body = node.child_by_field_name("body")
        if body is not None:
            self._collect_members(body, info)
        return info

    def _collect_members(self, body: Node, info: _TypeInfo):
        members = list(_named_children(body))
        # Enum members live under enum_body_declarations
        for child in list(members):
            if child.type == "enum_body_declarations":
                members.extend(_named_children(child))

        for member in members:
            if member.type == "method_declaration":
                info.methods.append(self._collect_method(member, info))
            elif member.type in ("field_declaration", "constant_declaration"):
                type_text = _erase(_text(member.child_by_field_name("type")))
                for declarator in member.children_by_field_name("declarator"):
                    name = _text(declarator.child_by_field_name("name"))
                    dims = _text(declarator.child_by_field_name("dimensions"))
                    info.raw_fields[name] = type_text + "".join(dims.split())
            elif member.type in TYPE_KINDS:
                nested = self._collect_type(member, info.unit, outer=info)
                info.nested[nested.simple] = nested

    def _collect_method(self, node: Node, owner: _TypeInfo) -> _MethodDecl:
        decl = _MethodDecl(
            name=_text(node.child_by_field_name("name")),
            node=node,
            owner=owner,
            type_params=self._type_parameters(node),
            raw_return=_erase(_text(node.child_by_field_name("type"))) or "void",
        )
        dims = _text(node.child_by_field_name("dimensions"))
        decl.raw_return += "".join(dims.split())

        params = node.child_by_field_name("parameters")
        for param in _named_children(params) if params else []:
            if param.type == "formal_parameter":
                type_text = _erase(_text(param.child_by_field_name("type")))
                type_text += "".join(_text(param.child_by_field_name("dimensions")).split())
                decl.raw_params.append((type_text, _text(param.child_by_field_name("name"))))
            elif param.type == "spread_parameter":
                parts = _named_children(param)
                type_node = next(p for p in parts if p.type not in ("modifiers", "variable_declarator"))
                declarator = next((p for p in parts if p.type == "variable_declarator"), None)
                name = _text(declarator.child_by_field_name("name")) if declarator else ""
                decl.raw_params.append((_erase(_text(type_node)) + "...", name))
        return decl

    @staticmethod
    def _type_parameters(node: Node) -> frozenset[str]:
        params = node.child_by_field_name("type_parameters")
        if params is None:
            return frozenset()
        names = set()
        for param in _named_children(params):
            ident = next((c for c in param.named_children if c.type in ("type_identifier", "identifier")), None)
            if ident is not None:
                names.add(_text(ident))
        return frozenset(names)

    # --- Pass 2: qualification, signatures and records ---

    def _qualify(
        self, type_text: str, ctx: _TypeInfo, type_params: frozenset[str] = frozenset()
    ) -> tuple[str, bool]:
        """Qualify a (possibly dotted, possibly array) type name.

        Returns the qualified name and whether it resolved; unresolved names
        are returned as written.
        """
        base, suffix = _split_suffix(_erase(type_text))
        if not base:
            return type_text, False
        if base in PRIMITIVES:
            return base + suffix, True

        head, _, rest = base.partition(".")
        qualified = self._qualify_simple(head, ctx, type_params)
        if qualified is None:
            if rest and head[:1].islower():
                # Already fully qualified
                return base + suffix, True
            return base + suffix, False
        if rest:
            qualified = f"{qualified}.{rest}"
        return qualified + suffix, True

    def _qualify_simple(
        self, name: str, ctx: _TypeInfo, type_params: frozenset[str] = frozenset()
    ) -> Optional[str]:
        if name in type_params:
            return OBJECT
        scope: Optional[_TypeInfo] = ctx
        while scope is not None:
            if name in scope.type_params:
                return OBJECT
            if scope.simple == name:
                return scope.name
            if name in scope.nested:
                return scope.nested[name].name
            inherited = self._inherited_nested(scope, name)
            if inherited:
                return inherited
            scope = scope.outer

        unit = ctx.unit
        if name in unit.top_level:
            return unit.top_level[name].name
        if name in unit.imports:
            return unit.imports[name]
        same_package = f"{unit.package}.{name}" if unit.package else name
        if same_package in self._types:
            return same_package
        for wildcard in unit.wildcards:
            candidate = f"{wildcard}.{name}"
            if candidate in self._types:
                return candidate
        if name in JAVA_LANG:
            return f"java.lang.{name}"
        return None

    def _inherited_nested(self, info: _TypeInfo, name: str) -> Optional[str]:
        for supertype in self._all_supertypes(info.name):
            sup = self._types.get(supertype)
            if sup is not None and name in sup.nested:
                return sup.nested[name].name
        return None

    def _build_records(self) -> dict[MethodSignature, MethodRecord]:
        # Supertypes first: nested-type lookups through inheritance need them
        for info in self._types.values():
            scope = info.outer or info
            if info.raw_superclass:
                info.superclass = self._qualify(info.raw_superclass, scope)[0]
            info.interfaces = [self._qualify(i, scope)[0] for i in info.raw_interfaces]
        self._supertype_cache = {}

        records: dict[MethodSignature, MethodRecord] = {}
        for info in self._types.values():
            for name, raw in info.raw_fields.items():
                qualified, ok = self._qualify(raw, info)
                info.fields[name] = qualified if ok else None

            for decl in info.methods:
                params = []
                for raw_type, param_name in decl.raw_params:
                    qualified, ok = self._qualify(raw_type, info, decl.type_params)
                    if not ok:
                        decl.resolved = False
                        logger.debug(f"Unresolved parameter type {raw_type} in {info.name}.{decl.name}")
                    params.append(qualified)
                    decl.param_types[param_name] = qualified.replace("...", "[]") if ok else None

                ret, ok = self._qualify(decl.raw_return, info, decl.type_params)
                decl.return_type = ret if ok else None
                decl.signature = MethodSignature(
                    package=info.unit.package,
                    type_name=info.path,
                    name=decl.name,
                    parameters=tuple(params),
                )

                if decl.signature in records:
                    logger.debug(f"Duplicate declaration {decl.signature}; keeping the first")
                    continue
                records[decl.signature] = self._make_record(decl)
        return records

    def _make_record(self, decl: _MethodDecl) -> MethodRecord:
        node = decl.node
        unit = decl.owner.unit
        start, end = node.start_point[0], node.end_point[0]
        source = textwrap.dedent("\n".join(unit.lines[start:end + 1]))
        body_node = node.child_by_field_name("body")

        return MethodRecord(
            signature=decl.signature,
            file=unit.path,
            start_line=start + 1,
            end_line=end + 1,
            source=source,
            body=_text(body_node) if body_node is not None else None,
            comments=self._leading_comments(node),
            return_type=decl.return_type,
            resolved=decl.resolved,
        )

    @staticmethod
    def _leading_comments(node: Node) -> str:
        comments = []
        sibling = node.prev_sibling
        while sibling is not None and sibling.type in ("line_comment", "block_comment"):
            comments.append(_format_comment(_text(sibling)))
            sibling = sibling.prev_sibling
        return "\n".join(reversed(comments))

    # --- Pass 3: call resolution ---

    def _resolve_calls(self) -> list[CallEdge]:
        edges: list[CallEdge] = []
        for info in self._types.values():
            if self.scope and not info.name.startswith(self.scope):
                continue
            for decl in info.methods:
                body = decl.node.child_by_field_name("body")
                if body is None or decl.signature is None:
                    continue
                try:
                    edges.extend(self._calls_in(decl, body))
                except RecursionError:
                    logger.warning(
                        f"Expression nesting too deep in {decl.signature}; "
                        f"dropping its calls ({info.unit.path})"
                    )
        return edges

    def _calls_in(self, decl: _MethodDecl, body: Node) -> list[CallEdge]:
        locals_ = _LocalScope(self, decl)
        edges = []
        for node in _walk(body):
            if node.type in _LocalScope.DECLARATIONS:
                locals_.declare(node)
            elif node.type == "method_invocation":
                target = self._resolve_invocation(node, decl, locals_)
                if target is not None and target.signature is not None:
                    edges.append(CallEdge(decl.signature, target.signature, line=node.start_point[0] + 1))
        return edges

    def _resolve_invocation(
        self,
        node: Node,
        decl: _MethodDecl,
        locals_: "_LocalScope",
        receiver_type: Optional[str] = None,
    ) -> Optional[_MethodDecl]:
        """Resolve one call; ``receiver_type`` skips inferring the receiver."""
        name = _text(node.child_by_field_name("name"))
        receiver = node.child_by_field_name("object")
        args_node = node.child_by_field_name("arguments")
        args = _named_children(args_node) if args_node is not None else []
        arg_types = [self._expr_type(a, decl, locals_) for a in args]
        owner = decl.owner

        if receiver is None:
            search: list[str] = []
            scope: Optional[_TypeInfo] = owner
            while scope is not None:
                search.append(scope.name)
                scope = scope.outer
            if name in owner.unit.static_imports:
                search.append(self._qualify(owner.unit.static_imports[name], owner)[0])
            search.extend(self._qualify(w, owner)[0] for w in owner.unit.static_wildcards)
            for type_name in search:
                found = self._select(type_name, name, arg_types, node)
                if found is not None:
                    return found
            logger.debug(f"Unresolved call {name}() at {owner.unit.path}:{node.start_point[0] + 1}")
            return None

        if receiver.type == "super":
            start = owner.supertypes
        else:
            if receiver_type is None:
                receiver_type = self._expr_type(receiver, decl, locals_)
            if receiver_type is None or receiver_type == NULL:
                logger.debug(
                    f"Unresolved receiver {_text(receiver)!r} for {name}() "
                    f"at {owner.unit.path}:{node.start_point[0] + 1}"
                )
                return None
            start = [receiver_type]

        for type_name in start:
            found = self._select(type_name, name, arg_types, node)
            if found is not None:
                return found
        logger.debug(f"No declaration of {name}() on {start} at {owner.unit.path}:{node.start_point[0] + 1}")
        return None

    def _hierarchy(self, type_name: str) -> Iterator[_TypeInfo]:
        """The type and its known supertypes, breadth first."""
        seen = {type_name}
        queue = deque([type_name])
        while queue:
            current = self._types.get(queue.popleft())
            if current is None:
                continue
            yield current
            for sup in current.supertypes:
                if sup not in seen:
                    seen.add(sup)
                    queue.append(sup)

    def _all_supertypes(self, type_name: str) -> frozenset[str]:
        cached = self._supertype_cache.get(type_name)
        if cached is None:
            cached = frozenset(
                sup for info in self._hierarchy(type_name) for sup in info.supertypes
            )
            self._supertype_cache[type_name] = cached
        return cached

    def _select(
        self, type_name: str, name: str, arg_types: list[Optional[str]], node: Node
    ) -> Optional[_MethodDecl]:
        """Pick the declaration a call resolves to, following the hierarchy.

        Overridden declarations (same parameter list further up) are skipped.
        Among applicable overloads the cheapest conversion wins; a tie is
        ambiguous and resolves to nothing.
        """
        scored: list[tuple[int, _MethodDecl]] = []
        seen_params: set[tuple[str, ...]] = set()
        for info in self._hierarchy(type_name):
            for candidate in info.methods:
                if candidate.name != name or candidate.signature is None:
                    continue
                params = candidate.signature.parameters
                if params in seen_params:
                    continue
                seen_params.add(params)
                cost = self._match_cost(params, arg_types)
                if cost is not None:
                    scored.append((cost, candidate))

        if not scored:
            return None
        best = min(cost for cost, _ in scored)
        winners = [c for cost, c in scored if cost == best]
        if len(winners) > 1:
            logger.debug(
                f"Ambiguous call {name}() at line {node.start_point[0] + 1}: "
                f"{[str(w.signature) for w in winners]}"
            )
            return None
        return winners[0]

    def _match_cost(self, params: tuple[str, ...], args: list[Optional[str]]) -> Optional[int]:
        if params and params[-1].endswith("..."):
            fixed, element = params[:-1], params[-1][:-3]
            if len(args) == len(params) and args[-1] == element + "[]":
                return self._sum_costs(list(params[:-1]) + [element + "[]"], args)
            if len(args) < len(fixed):
                return None
            expanded = list(fixed) + [element] * (len(args) - len(fixed))
            total = self._sum_costs(expanded, args)
            return None if total is None else total + 10

        if len(params) != len(args):
            return None
        return self._sum_costs(list(params), args)

    def _sum_costs(self, params: list[str], args: list[Optional[str]]) -> Optional[int]:
        total = 0
        for param, arg in zip(params, args):
            cost = self._conversion_cost(arg, param)
            if cost is None:
                return None
            total += cost
        return total

    def _conversion_cost(self, arg: Optional[str], param: str) -> Optional[int]:
        """Cost of passing ``arg`` where ``param`` is expected, None if impossible."""
        if arg is None:
            return 2
        if arg == param:
            return 0
        if arg == NULL:
            return None if param in PRIMITIVES else 1
        if arg in PRIMITIVES:
            if param in WIDENING.get(arg, ()):
                return 1
            if param in (BOXED.get(arg), OBJECT) or (param == "java.lang.Number" and arg not in ("char", "boolean")):
                return 1
            return None
        if param in PRIMITIVES:
            unboxed = UNBOXED.get(arg)
            if unboxed is not None and (unboxed == param or param in WIDENING.get(unboxed, ())):
                return 1
            return None
        if param == OBJECT:
            return 1
        if arg in self._types:
            return 1 if param in self._all_supertypes(arg) else None
        if arg in UNBOXED or arg == STRING:
            return None
        # External type with unknown hierarchy
        return 2

    def _expr_type(self, node: Node, decl: _MethodDecl, locals_: "_LocalScope") -> Optional[str]:
        """Static type of an expression, or None when it cannot be inferred."""
        kind = node.type
        owner = decl.owner

        if kind == "this":
            return owner.name
        if kind == "identifier":
            name = _text(node)
            is_local, local_type = locals_.lookup(name, node.start_byte)
            if is_local:
                return local_type
            field_type = self._field_type(owner, name)
            if field_type is not None:
                return field_type
            return self._qualify_simple(name, owner)
        if kind == "field_access":
            obj = node.child_by_field_name("object")
            field_name = _text(node.child_by_field_name("field"))
            if obj is not None and obj.type == "super":
                return self._field_type_in(owner.supertypes, field_name)
            obj_type = self._expr_type(obj, decl, locals_) if obj is not None else None
            if obj_type is None:
                # Possibly a package-qualified type name
                qualified = _text(node)
                return qualified if qualified in self._types else None
            if obj_type.endswith("[]") and field_name == "length":
                return "int"
            return self._field_type_in([obj_type], field_name) or (
                f"{obj_type}.{field_name}" if f"{obj_type}.{field_name}" in self._types else None
            )
        if kind == "method_invocation":
            return self._invocation_type(node, decl, locals_)
        if kind in ("object_creation_expression", "cast_expression"):
            return self._qualify_or_none(_text(node.child_by_field_name("type")), owner, decl)
        if kind == "array_creation_expression":
            base = self._qualify_or_none(_text(node.child_by_field_name("type")), owner, decl)
            dims = sum(1 for c in node.children if c.type in ("dimensions_expr", "dimensions"))
            return base + "[]" * max(dims, 1) if base else None
        if kind == "array_access":
            array_type = self._expr_type(node.child_by_field_name("array"), decl, locals_)
            return array_type[:-2] if array_type and array_type.endswith("[]") else None
        if kind == "parenthesized_expression":
            inner = _named_children(node)
            return self._expr_type(inner[0], decl, locals_) if inner else None
        if kind == "ternary_expression":
            return self._expr_type(node.child_by_field_name("consequence"), decl, locals_)
        if kind == "assignment_expression":
            return self._expr_type(node.child_by_field_name("left"), decl, locals_)
        if kind == "unary_expression":
            if _text(node.child_by_field_name("operator")) == "!":
                return "boolean"
            return self._expr_type(node.child_by_field_name("operand"), decl, locals_)
        if kind == "update_expression":
            inner = _named_children(node)
            return self._expr_type(inner[0], decl, locals_) if inner else None
        if kind == "binary_expression":
            return self._binary_type(node, decl, locals_)
        if kind == "instanceof_expression":
            return "boolean"
        return self._literal_type(node)

    def _invocation_type(self, node: Node, decl: _MethodDecl, locals_: "_LocalScope") -> Optional[str]:
        """Return type of a call, walking ``a().b().c()`` chains innermost first."""
        chain = [node]
        receiver = node.child_by_field_name("object")
        while receiver is not None and receiver.type == "method_invocation":
            chain.append(receiver)
            receiver = receiver.child_by_field_name("object")

        target = self._resolve_invocation(chain.pop(), decl, locals_)
        while chain:
            if target is None or target.return_type is None:
                return None
            target = self._resolve_invocation(chain.pop(), decl, locals_, target.return_type)
        return target.return_type if target is not None else None

    def _binary_type(self, node: Node, decl: _MethodDecl, locals_: "_LocalScope") -> Optional[str]:
        # Left-nested chains (a + b + c + ...) are folded in a loop
        operands: list[tuple[str, Node]] = []
        while node.type == "binary_expression":
            operands.append((_text(node.child_by_field_name("operator")), node.child_by_field_name("right")))
            node = node.child_by_field_name("left")

        result = self._expr_type(node, decl, locals_)
        for operator, right in reversed(operands):
            if operator in COMPARISON_OPERATORS:
                result = "boolean"
            else:
                result = self._combine(operator, result, self._expr_type(right, decl, locals_))
        return result

    @staticmethod
    def _combine(operator: str, left: Optional[str], right: Optional[str]) -> Optional[str]:
        if operator == "+" and STRING in (left, right):
            return STRING
        left, right = UNBOXED.get(left, left), UNBOXED.get(right, right)
        if left in NUMERIC_RANK and right in NUMERIC_RANK:
            if operator in ("<<", ">>", ">>>"):
                return left if NUMERIC_RANK.index(left) > NUMERIC_RANK.index("int") else "int"
            wider = max(left, right, key=NUMERIC_RANK.index)
            return wider if NUMERIC_RANK.index(wider) > NUMERIC_RANK.index("int") else "int"
        if left == right == "boolean":
            return "boolean"
        return None

    @staticmethod
    def _literal_type(node: Node) -> Optional[str]:
        kind = node.type
        if kind in ("string_literal", "text_block"):
            return STRING
        if kind == "character_literal":
            return "char"
        if kind in ("true", "false"):
            return "boolean"
        if kind == "null_literal":
            return NULL
        if kind == "class_literal":
            return "java.lang.Class"
        if kind in ("decimal_integer_literal", "hex_integer_literal", "octal_integer_literal", "binary_integer_literal"):
            return "long" if _text(node).lower().endswith("l") else "int"
        if kind in ("decimal_floating_point_literal", "hex_floating_point_literal"):
            return "float" if _text(node).lower().endswith("f") else "double"
        return None

    def _qualify_or_none(self, type_text: str, owner: _TypeInfo, decl: _MethodDecl) -> Optional[str]:
        qualified, ok = self._qualify(type_text, owner, decl.type_params)
        return qualified if ok else None

    def _field_type(self, owner: _TypeInfo, name: str) -> Optional[str]:
        """Field type visible from ``owner``: its hierarchy, then enclosing types."""
        scope: Optional[_TypeInfo] = owner
        while scope is not None:
            found = self._field_type_in([scope.name], name)
            if found is not None:
                return found
            scope = scope.outer
        return None

    def _field_type_in(self, type_names: list[str], name: str) -> Optional[str]:
        for type_name in type_names:
            for info in self._hierarchy(type_name):
                if name in info.fields:
                    return info.fields[name]
        return None


class _LocalScope:
    """Local variables and parameters of one method, by declaration position.

    A local is visible from its declaration to the end of the block (or
    statement, catch clause, lambda) that encloses it, and hides fields of
    the same name there even when its type is unknown.
    """

    DECLARATIONS = frozenset({
        "local_variable_declaration",
        "enhanced_for_statement",
        "catch_formal_parameter",
        "resource",
        "lambda_expression",
    })

    def __init__(self, analyzer: JavaSourceAnalyzer, decl: _MethodDecl):
        self.analyzer = analyzer
        self.decl = decl
        self.params = decl.param_types
        self._declared: list[tuple[int, int, str, Optional[str]]] = []  # (start, end, name, type)

    def lookup(self, name: str, position: int) -> tuple[bool, Optional[str]]:
        """Whether ``name`` is a local or parameter at ``position``, and its type."""
        for start, end, declared, type_name in reversed(self._declared):
            if declared == name and start <= position < end:
                return True, type_name
        if name in self.params:
            return True, self.params[name]
        return False, None

    def declare(self, node: Node):
        if node.type == "local_variable_declaration":
            type_text = _text(node.child_by_field_name("type"))
            for declarator in node.children_by_field_name("declarator"):
                name = _text(declarator.child_by_field_name("name"))
                dims = "".join(_text(declarator.child_by_field_name("dimensions")).split())
                value = declarator.child_by_field_name("value")
                self._add(node, node.parent, name, self._declared_type(type_text, value, dims))
        elif node.type == "enhanced_for_statement":
            type_text = _text(node.child_by_field_name("type"))
            name = _text(node.child_by_field_name("name"))
            if type_text == "var":
                iterable = self.analyzer._expr_type(node.child_by_field_name("value"), self.decl, self)
                element = iterable[:-2] if iterable and iterable.endswith("[]") else None
                self._add(node, node, name, element)
            else:
                self._add(node, node, name, self._qualify(type_text))
        elif node.type == "catch_formal_parameter":
            name = _text(node.child_by_field_name("name"))
            catch_type = next((c for c in node.named_children if c.type == "catch_type"), None)
            types = _named_children(catch_type) if catch_type is not None else []
            # Multi-catch has no single static type we can use
            self._add(node, node.parent, name, self._qualify(_text(types[0])) if len(types) == 1 else None)
        elif node.type == "resource":
            name_node = node.child_by_field_name("name")
            if name_node is not None:
                # resource -> resource_specification -> try statement
                statement = node.parent.parent if node.parent is not None else None
                self._add(
                    node,
                    statement,
                    _text(name_node),
                    self._declared_type(
                        _text(node.child_by_field_name("type")), node.child_by_field_name("value"), ""
                    ),
                )
        elif node.type == "lambda_expression":
            self._declare_lambda(node)

    def _declare_lambda(self, node: Node):
        params = node.child_by_field_name("parameters")
        if params is None:
            return
        if params.type == "identifier":
            self._add(node, node, _text(params), None)
            return
        for param in _named_children(params):
            if param.type == "identifier":
                # Inferred parameter types are not tracked
                self._add(node, node, _text(param), None)
            elif param.type == "formal_parameter":
                type_text = _text(param.child_by_field_name("type"))
                type_name = None if type_text == "var" else self._qualify(type_text)
                self._add(node, node, _text(param.child_by_field_name("name")), type_name)

    def _declared_type(self, type_text: str, value: Optional[Node], dims: str) -> Optional[str]:
        if type_text == "var":
            if value is None:
                return None
            inferred = self.analyzer._expr_type(value, self.decl, self)
            return None if inferred == NULL else inferred
        qualified = self._qualify(type_text)
        return qualified + dims if qualified else None

    def _qualify(self, type_text: str) -> Optional[str]:
        qualified, ok = self.analyzer._qualify(type_text, self.decl.owner, self.decl.type_params)
        return qualified if ok else None

    def _add(self, node: Node, scope: Optional[Node], name: str, type_name: Optional[str]):
        end = scope.end_byte if scope is not None else node.end_byte
        self._declared.append((node.start_byte, end, name, type_name))
