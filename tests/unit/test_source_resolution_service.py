import codecs
import hashlib
import logging
from pathlib import Path

import pytest

from buildvalidator.application.services import source_resolution_service
from buildvalidator.application.services.source_resolution_service import SourceResolver
from buildvalidator.core.config import MismatchPolicy, load_settings
from buildvalidator.core.errors import ChecksumMismatchError, SourceNotFoundError, SourceReadError
from buildvalidator.core.hashing import HashAlgorithm
from buildvalidator.domain.models.source import EmbeddedText, LinkRule, ResolutionStatus, SourceRecord

LOGGER_NAME = "tests.source_resolution"


def _resolver(tmp_path: Path, policy: MismatchPolicy = MismatchPolicy.COLLECT, **kwargs) -> SourceResolver:
    settings = load_settings(source_root=tmp_path, encoding="utf-8", mismatch_policy=policy, max_workers=1)
    return SourceResolver(settings, logger=logging.getLogger(LOGGER_NAME), **kwargs)


def _record(path: Path | str, content: bytes, alg: HashAlgorithm = HashAlgorithm.SHA256, **kwargs) -> SourceRecord:
    return SourceRecord(path=str(path), hash=hashlib.new(alg.value, content).digest(), hash_algorithm=alg, **kwargs)


def _mismatch_lines(caplog: pytest.LogCaptureFixture) -> list[str]:
    return [r.getMessage() for r in caplog.records if r.name == LOGGER_NAME and r.levelno == logging.ERROR]


def test_raw_path_with_matching_hash_is_verified(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    source = tmp_path / "src" / "a.cs"
    source.parent.mkdir()
    source.write_bytes(b"class A {}\n")

    resolved = _resolver(tmp_path).resolve_source(_record(source, b"class A {}\n"), [])

    assert resolved.on_disk_path == source
    assert resolved.status is ResolutionStatus.VERIFIED
    assert resolved.text.content == "class A {}\n"
    assert resolved.text.checksum == hashlib.sha256(b"class A {}\n").digest()
    assert _mismatch_lines(caplog) == []


def test_link_rule_rewrites_onto_source_root(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / "a.cs").write_bytes(b"class A {}\n")
    record = _record("/build/obj/a.cs", b"class A {}\n")

    resolved = _resolver(tmp_path).resolve_source(record, [LinkRule(prefix="/build/obj/")], local_source_root=repo)

    assert resolved.on_disk_path == repo / "a.cs"
    assert resolved.status is ResolutionStatus.VERIFIED


def test_edited_file_is_returned_and_logged(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / "a.cs").write_bytes(b"class A { int edited; }\n")
    record = _record("/build/obj/a.cs", b"class A {}\n")

    with caplog.at_level(logging.ERROR, logger=LOGGER_NAME):
        resolved = _resolver(tmp_path).resolve_source(record, [LinkRule(prefix="/build/obj/")], local_source_root=repo)

    assert resolved.status is ResolutionStatus.MISMATCHED
    assert resolved.text.content == "class A { int edited; }\n"
    assert _mismatch_lines(caplog) == [f'File "{repo / "a.cs"}" has incorrect hash']


def test_missing_file_fails_naming_recorded_path(tmp_path: Path) -> None:
    missing = tmp_path / "missing" / "a.cs"

    with pytest.raises(SourceNotFoundError) as exc_info:
        _resolver(tmp_path).resolve_source(_record(missing, b""), [])

    assert exc_info.value.path == str(missing)


def test_missing_after_rules_fails_naming_raw_path(tmp_path: Path) -> None:
    record = _record("/missing/a.cs", b"")

    with pytest.raises(SourceNotFoundError) as exc_info:
        _resolver(tmp_path).resolve_source(record, [LinkRule(prefix="/missing/")])

    assert exc_info.value.path == "/missing/a.cs"


def test_embedded_text_never_touches_file_system(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    class ExplodingPathResolver:
        def resolve(self, *args, **kwargs):
            raise AssertionError("path resolution must not run for embedded text")

    def no_disk(*args, **kwargs):
        raise AssertionError("file system must not be touched for embedded text")

    monkeypatch.setattr(source_resolution_service, "is_existing_file", no_disk)
    monkeypatch.setattr(source_resolution_service, "read_file_bytes", no_disk)

    text = "// embedded\nclass E {}\n"
    record = _record("/build/obj/e.cs", text.encode("utf-8"), origin=EmbeddedText(text))
    resolver = _resolver(tmp_path, path_resolver=ExplodingPathResolver())

    resolved = resolver.resolve_source(record, [LinkRule(prefix="/build/obj/")])

    assert resolved.on_disk_path is None
    assert resolved.status is ResolutionStatus.EMBEDDED
    assert resolved.text.content == text
    assert resolved.display_path == "[embedded]/build/obj/e.cs"


def test_embedded_text_reports_declared_encoding(tmp_path: Path) -> None:
    record = _record("/build/e.cs", b"e", origin=EmbeddedText("e"))
    resolver = _resolver(tmp_path)

    assert resolver.resolve_source(record, [], declared_encoding="latin-1").text.encoding == "latin-1"
    assert resolver.resolve_source(record, []).text.encoding == "utf-8"


def test_embedded_text_is_trusted_without_hashing(tmp_path: Path) -> None:
    record = _record("/build/e.cs", b"original", origin=EmbeddedText("something else"))

    resolved = _resolver(tmp_path, policy=MismatchPolicy.FAIL_FAST).resolve_source(record, [])

    assert resolved.status is ResolutionStatus.EMBEDDED
    assert resolved.text.content == "something else"
    assert resolved.text.checksum == record.hash


def test_fail_fast_policy_raises_after_logging(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    source = tmp_path / "a.cs"
    source.write_bytes(b"changed")

    with caplog.at_level(logging.ERROR, logger=LOGGER_NAME):
        with pytest.raises(ChecksumMismatchError) as exc_info:
            _resolver(tmp_path, policy=MismatchPolicy.FAIL_FAST).resolve_source(_record(source, b"original"), [])

    assert exc_info.value.path == str(source)
    assert exc_info.value.expected == hashlib.sha256(b"original").digest()
    assert exc_info.value.actual == hashlib.sha256(b"changed").digest()
    assert len(_mismatch_lines(caplog)) == 1


def test_hash_uses_record_algorithm(tmp_path: Path) -> None:
    source = tmp_path / "legacy.cs"
    source.write_bytes(b"legacy")

    resolved = _resolver(tmp_path).resolve_source(_record(source, b"legacy", alg=HashAlgorithm.SHA1), [])

    assert resolved.status is ResolutionStatus.VERIFIED
    assert resolved.text.checksum_algorithm is HashAlgorithm.SHA1
    assert len(resolved.text.checksum) == 20


def test_byte_order_mark_overrides_declared_encoding_and_is_hashed(tmp_path: Path) -> None:
    raw = codecs.BOM_UTF16_LE + "class Ü {}".encode("utf-16-le")
    source = tmp_path / "bom.cs"
    source.write_bytes(raw)

    resolved = _resolver(tmp_path).resolve_source(_record(source, raw), [])

    assert resolved.status is ResolutionStatus.VERIFIED
    assert resolved.text.content == "class Ü {}"
    assert resolved.text.encoding == "utf-16"


def test_declared_encoding_is_used_without_byte_order_mark(tmp_path: Path) -> None:
    raw = "café".encode("latin-1")
    source = tmp_path / "latin.txt"
    source.write_bytes(raw)

    resolved = _resolver(tmp_path).resolve_source(_record(source, raw), [], declared_encoding="latin-1")

    assert resolved.text.content == "café"
    assert resolved.text.encoding == "latin-1"


def test_undecodable_content_is_a_read_error(tmp_path: Path) -> None:
    raw = b"\xfd not utf-8"
    source = tmp_path / "bad.cs"
    source.write_bytes(raw)

    with pytest.raises(SourceReadError) as exc_info:
        _resolver(tmp_path).resolve_source(_record(source, raw), [])

    assert exc_info.value.path == str(source)


def test_os_error_during_read_is_a_read_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    source = tmp_path / "locked.cs"
    source.write_bytes(b"x")

    def denied(path: Path) -> bytes:
        raise PermissionError(13, "Permission denied", str(path))

    monkeypatch.setattr(source_resolution_service, "read_file_bytes", denied)

    with pytest.raises(SourceReadError):
        _resolver(tmp_path).resolve_source(_record(source, b"x"), [])


def test_resolving_twice_is_idempotent(tmp_path: Path) -> None:
    source = tmp_path / "a.cs"
    source.write_bytes(b"stable content")
    resolver = _resolver(tmp_path)
    record = _record(source, b"stable content")

    first = resolver.resolve_source(record, [])
    second = resolver.resolve_source(record, [])

    assert first == second
    assert first.text.content == second.text.content
