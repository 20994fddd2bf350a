"""JSON persistence for analysis snapshots.

The snapshot format is the source analyzer contract written down: any
analyzer that emits it can feed the graph builder. Uses msgspec for fast
encoding and typed decoding.
"""

from pathlib import Path
from typing import Optional

import msgspec

from ..analyzer.base import AnalysisSnapshot
from ..models import CallEdge, MethodRecord, MethodSignature, TypeDecl

SNAPSHOT_VERSION = "1.0"


class SignatureSpec(msgspec.Struct, omit_defaults=True):
    """Method signature in snapshot JSON."""

    package: str
    type: str
    name: str
    parameters: list[str] = []


class RecordSpec(msgspec.Struct, omit_defaults=True):
    """Method declaration metadata in snapshot JSON."""

    signature: SignatureSpec
    file: str
    start_line: int
    end_line: int
    source: str = ""
    body: Optional[str] = None
    comments: str = ""
    return_type: Optional[str] = None
    resolved: bool = True


class EdgeSpec(msgspec.Struct, omit_defaults=True):
    """Resolved call edge in snapshot JSON."""

    caller: SignatureSpec
    callee: SignatureSpec
    line: Optional[int] = None


class TypeSpec(msgspec.Struct, omit_defaults=True):
    """Type declaration in snapshot JSON."""

    name: str
    kind: str
    file: str
    superclass: Optional[str] = None
    interfaces: list[str] = []
    methods: list[SignatureSpec] = []
    is_abstract: bool = False


class SnapshotSpec(msgspec.Struct, omit_defaults=True):
    """Top-level snapshot document."""

    version: str = SNAPSHOT_VERSION
    root: str = ""
    scope: str = ""
    files: list[str] = []
    skipped_files: list[str] = []
    types: list[TypeSpec] = []
    methods: list[RecordSpec] = []
    edges: list[EdgeSpec] = []


# Create reusable encoder/decoder for performance
_decoder = msgspec.json.Decoder(SnapshotSpec)
_encoder = msgspec.json.Encoder()


def _sig_to_spec(sig: MethodSignature) -> SignatureSpec:
    return SignatureSpec(
        package=sig.package, type=sig.type_name, name=sig.name, parameters=list(sig.parameters)
    )


def _spec_to_sig(spec: SignatureSpec) -> MethodSignature:
    return MethodSignature(
        package=spec.package, type_name=spec.type, name=spec.name, parameters=tuple(spec.parameters)
    )


def snapshot_to_spec(snapshot: AnalysisSnapshot) -> SnapshotSpec:
    """Convert a snapshot to its serializable struct."""
    return SnapshotSpec(
        root=snapshot.root,
        scope=snapshot.scope,
        files=list(snapshot.files),
        skipped_files=list(snapshot.skipped_files),
        types=[
            TypeSpec(
                name=t.name,
                kind=t.kind,
                file=t.file,
                superclass=t.superclass,
                interfaces=list(t.interfaces),
                methods=[_sig_to_spec(m) for m in t.methods],
                is_abstract=t.is_abstract,
            )
            for t in snapshot.types.values()
        ],
        methods=[
            RecordSpec(
                signature=_sig_to_spec(r.signature),
                file=r.file,
                start_line=r.start_line,
                end_line=r.end_line,
                source=r.source,
                body=r.body,
                comments=r.comments,
                return_type=r.return_type,
                resolved=r.resolved,
            )
            for r in snapshot.records.values()
        ],
        edges=[
            EdgeSpec(caller=_sig_to_spec(e.caller), callee=_sig_to_spec(e.callee), line=e.line)
            for e in snapshot.edges
        ],
    )


def spec_to_snapshot(spec: SnapshotSpec) -> AnalysisSnapshot:
    """Convert a decoded struct back into an AnalysisSnapshot."""
    records: dict[MethodSignature, MethodRecord] = {}
    for r in spec.methods:
        sig = _spec_to_sig(r.signature)
        records[sig] = MethodRecord(
            signature=sig,
            file=r.file,
            start_line=r.start_line,
            end_line=r.end_line,
            source=r.source,
            body=r.body,
            comments=r.comments,
            return_type=r.return_type,
            resolved=r.resolved,
        )

    types = {
        t.name: TypeDecl(
            name=t.name,
            kind=t.kind,
            file=t.file,
            superclass=t.superclass,
            interfaces=tuple(t.interfaces),
            methods=tuple(_spec_to_sig(m) for m in t.methods),
            is_abstract=t.is_abstract,
        )
        for t in spec.types
    }

    edges = [
        CallEdge(caller=_spec_to_sig(e.caller), callee=_spec_to_sig(e.callee), line=e.line)
        for e in spec.edges
    ]

    return AnalysisSnapshot(
        root=spec.root,
        scope=spec.scope,
        records=records,
        edges=edges,
        types=types,
        files=list(spec.files),
        skipped_files=list(spec.skipped_files),
    )


def load_snapshot(path: str | Path) -> AnalysisSnapshot:
    """Load a snapshot JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        msgspec.DecodeError: If the file is not valid snapshot JSON.
    """
    with open(path, "rb") as f:
        return spec_to_snapshot(_decoder.decode(f.read()))


def dump_snapshot(snapshot: AnalysisSnapshot, path: str | Path):
    """Write a snapshot as JSON."""
    with open(path, "wb") as f:
        f.write(msgspec.json.format(_encoder.encode(snapshot_to_spec(snapshot)), indent=2))
