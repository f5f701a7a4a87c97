import io
import os

import pytest

from batch_pdf_signer import batch
from batch_pdf_signer.batch import (
    BatchOrchestrator,
    BatchResult,
    ProcessStatus,
    ResolvedFile,
    SigningConfig,
    run_batch,
)


def touch(path):
    path.write_bytes(b"%PDF-1.4\n")
    return str(path)


@pytest.fixture
def files(tmp_path):
    return [touch(tmp_path / name) for name in ("one.pdf", "two.pdf", "three.pdf")]


def test_partial_failure(files, recorder):
    invoker = recorder([True, False, True])
    result = BatchOrchestrator(invoker, io.StringIO()).sign_all(SigningConfig(patterns=tuple(files)))

    assert result.status() is ProcessStatus.PARTIAL_FAILURE
    assert (result.success_count, result.failed_count) == (2, 1)
    assert [call[0] for call in invoker.calls] == files


def test_all_failed(files, recorder):
    status = run_batch(SigningConfig(patterns=tuple(files[:2])), recorder(default=False), io.StringIO())
    assert status is ProcessStatus.ALL_FAILED


def test_all_succeeded(files, recorder):
    status = run_batch(SigningConfig(patterns=tuple(files)), recorder(), io.StringIO())
    assert status is ProcessStatus.SUCCESS


def test_no_matching_files_is_success(tmp_path, recorder):
    invoker = recorder()
    errors = io.StringIO()
    config = SigningConfig(patterns=(str(tmp_path / "missing.pdf"), str(tmp_path / "*.pdf")))

    status = run_batch(config, invoker, errors)

    assert status is ProcessStatus.SUCCESS
    assert invoker.calls == []
    assert errors.getvalue() == ""


def test_output_paths_built_from_base_name(tmp_path, files, recorder):
    invoker = recorder()
    config = SigningConfig(patterns=(files[0],), out_dir="/out/", out_prefix="p_", out_suffix="_signed")

    run_batch(config, invoker, io.StringIO())

    assert invoker.calls == [(files[0], "/out/p_one_signed.pdf")]


def test_patterns_processed_in_order(tmp_path, recorder):
    first = tmp_path / "first"
    second = tmp_path / "second"
    first.mkdir()
    second.mkdir()
    a = touch(first / "a.pdf")
    b = touch(second / "b.pdf")
    c = touch(first / "c.pdf")
    invoker = recorder()

    run_batch(SigningConfig(patterns=(c, str(second / "*.pdf"), a)), invoker, io.StringIO())

    assert [call[0] for call in invoker.calls] == [c, b, a]


def test_wildcard_follows_listing_order(tmp_path, recorder):
    for name in ("x.pdf", "y.pdf", "z.pdf"):
        touch(tmp_path / name)
    invoker = recorder()

    run_batch(SigningConfig(patterns=(str(tmp_path / "*.pdf"),)), invoker, io.StringIO())

    expected = [os.path.join(str(tmp_path), name) for name in os.listdir(str(tmp_path))]
    assert [call[0] for call in invoker.calls] == expected


def test_unreadable_files_are_reported_in_order_and_skipped(files, recorder, monkeypatch):
    unreadable = {files[0], files[2]}
    monkeypatch.setattr(batch, "is_readable", lambda path: path not in unreadable)
    invoker = recorder()
    errors = io.StringIO()

    status = run_batch(SigningConfig(patterns=tuple(files)), invoker, errors)

    assert status is ProcessStatus.PARTIAL_FAILURE
    assert invoker.calls == [(files[1], "two.pdf")]
    assert errors.getvalue().splitlines() == [
        f"File '{files[0]}' is not readable.",
        f"File '{files[2]}' is not readable.",
    ]


def test_only_unreadable_files_is_all_failed(files, recorder, monkeypatch):
    monkeypatch.setattr(batch, "is_readable", lambda path: False)

    status = run_batch(SigningConfig(patterns=tuple(files)), recorder(), io.StringIO())

    assert status is ProcessStatus.ALL_FAILED


def test_unlistable_directory_is_skipped_without_diagnostic(tmp_path, files, recorder, monkeypatch):
    # Unlike unreadable files, a wildcard directory that cannot be listed
    # is skipped silently and is not counted as a failure.
    monkeypatch.setattr(batch, "resolve", lambda pattern: iter(()) if "*" in pattern else iter([pattern]))
    invoker = recorder()
    errors = io.StringIO()

    status = run_batch(SigningConfig(patterns=(str(tmp_path / "locked" / "*.pdf"), files[0])), invoker, errors)

    assert status is ProcessStatus.SUCCESS
    assert len(invoker.calls) == 1
    assert errors.getvalue() == ""


def test_invoker_exception_counts_as_failure(files, recorder):
    calls = []

    def flaky(input_path, output_path):
        calls.append(input_path)
        if input_path == files[1]:
            raise RuntimeError("token removed")
        return True

    errors = io.StringIO()
    status = run_batch(SigningConfig(patterns=tuple(files)), flaky, errors)

    assert status is ProcessStatus.PARTIAL_FAILURE
    assert calls == files
    assert errors.getvalue() == f"Error signing '{files[1]}': token removed\n"


def test_non_true_results_are_failures(files):
    status = run_batch(SigningConfig(patterns=tuple(files[:2])), lambda i, o: None, io.StringIO())
    assert status is ProcessStatus.ALL_FAILED


def test_invoker_object_with_sign_method(files):
    class Signer:
        def __init__(self):
            self.signed = []

        def sign(self, input_path, output_path):
            self.signed.append(input_path)
            return True

    signer = Signer()
    status = BatchOrchestrator(signer, io.StringIO()).run(SigningConfig(patterns=(files[0],)))

    assert status is ProcessStatus.SUCCESS
    assert signer.signed == [files[0]]


@pytest.mark.parametrize("ok, expected", [(True, ProcessStatus.SUCCESS), (False, ProcessStatus.ALL_FAILED)])
def test_explicit_pair_mode(tmp_path, recorder, ok, expected):
    invoker = recorder([ok])
    config = SigningConfig(in_file="in.pdf", out_file=str(tmp_path / "out.pdf"))

    status = run_batch(config, invoker, io.StringIO())

    assert status is expected
    assert invoker.calls == [("in.pdf", str(tmp_path / "out.pdf"))]


def test_config_is_not_mutated(files, recorder):
    config = SigningConfig(patterns=tuple(files), out_suffix="_signed")
    before = repr(config)

    run_batch(config, recorder(), io.StringIO())

    assert repr(config) == before


def test_same_batch_twice_is_identical(files, recorder):
    config = SigningConfig(patterns=tuple(files), out_dir="/out/", out_suffix="_signed")
    first, second = recorder([True, False, True]), recorder([True, False, True])

    assert run_batch(config, first, io.StringIO()) == run_batch(config, second, io.StringIO())
    assert first.calls == second.calls


def test_plan_lists_readable_files_only(files, monkeypatch):
    monkeypatch.setattr(batch, "is_readable", lambda path: path != files[1])
    config = SigningConfig(patterns=tuple(files), out_suffix="_signed")

    planned = list(BatchOrchestrator().plan(config))

    assert planned == [
        ResolvedFile(files[0], "one_signed.pdf"),
        ResolvedFile(files[2], "three_signed.pdf"),
    ]


def test_plan_explicit_pair():
    config = SigningConfig(in_file="in.pdf", out_file="out.pdf")
    assert list(BatchOrchestrator().plan(config)) == [ResolvedFile("in.pdf", "out.pdf")]


@pytest.mark.parametrize("success, failed, expected", [
    (0, 0, ProcessStatus.SUCCESS),
    (3, 0, ProcessStatus.SUCCESS),
    (2, 1, ProcessStatus.PARTIAL_FAILURE),
    (0, 2, ProcessStatus.ALL_FAILED),
])
def test_batch_result_status(success, failed, expected):
    assert BatchResult(success, failed).status() is expected


def test_has_work():
    assert SigningConfig(patterns=("a.pdf",)).has_work()
    assert SigningConfig(in_file="a.pdf", out_file="b.pdf").has_work()
    assert not SigningConfig(in_file="a.pdf").has_work()
    assert not SigningConfig().has_work()
