from __future__ import annotations

import itertools
from dataclasses import replace

import pytest

from doc_actions.classifier import (
    OPEN_ROUTE,
    PREVIEW_ROUTE,
    REASON_NO_APP,
    REASON_PARTIAL,
    VIEW_ROUTE,
    ActionClassifier,
    MimePatternPreviewPolicy,
    PreviewRequestBuilder,
)
from doc_actions.model import (
    MIME_TYPE_PACKAGE_ARCHIVE,
    DocFlags,
    Grant,
    HandoffAction,
    NavigationStack,
    OutcomeKind,
    RootFlags,
)
from doc_actions.state import State
from tests.helpers.fakes import FakeDialogs, FakeHost, FakeLauncher, FakeSelection, make_dir, make_doc, make_root

ALL = (HandoffAction.MANAGE, HandoffAction.PREVIEW, HandoffAction.VIEW)
DOWNLOADS = make_root("downloads", RootFlags.MANAGED)
HOME = make_root("home")


def _classifier(
    launcher: FakeLauncher,
    root=HOME,
    depth: int = 1,
    suppression: str = "depth",
    quick_viewer: str | None = "com.example.quickview",
    stack: NavigationStack | None = None,
):
    host = FakeHost(root)
    if stack is None:
        stack = NavigationStack(root, *[make_dir(f"d{i}") for i in range(depth)])
    dialogs = FakeDialogs()
    builder = PreviewRequestBuilder(MimePatternPreviewPolicy(["image/*", "text/*"]), quick_viewer)
    classifier = ActionClassifier(host, State(stack), launcher, dialogs, builder, managed_suppression=suppression)
    return classifier, host, dialogs


@pytest.mark.parametrize("mime", ["image/png", MIME_TYPE_PACKAGE_ARCHIVE, "application/zip", "text/plain"])
@pytest.mark.parametrize("root", [HOME, DOWNLOADS])
def test_partial_document_is_always_refused(mime, root) -> None:
    launcher = FakeLauncher(accepts=ALL)
    classifier, host, dialogs = _classifier(launcher, root=root)
    doc = make_doc("dl.part", mime, DocFlags.PARTIAL)

    assert classifier.classify(doc).reason == REASON_PARTIAL

    outcome = classifier.dispatch(doc)
    assert outcome.kind is OutcomeKind.FAILED
    assert outcome.reason == REASON_PARTIAL
    assert launcher.started == []
    assert host.calls == []
    assert dialogs.notices == [REASON_PARTIAL]


def test_container_is_opened_in_place_and_clears_selection() -> None:
    launcher = FakeLauncher(accepts=ALL)
    classifier, host, _ = _classifier(launcher)
    folder = make_dir("photos")
    selection = FakeSelection(["a", "b"])

    outcome = classifier.dispatch(folder, selection=selection)

    assert outcome.kind is OutcomeKind.CONTAINER
    assert host.calls == [("open_container_document", folder)]
    assert launcher.started == []
    assert selection.cleared == 1


def test_container_ignores_partial_flag() -> None:
    classifier, host, _ = _classifier(FakeLauncher())
    folder = make_dir("incoming")
    folder = replace(folder, flags=DocFlags.PARTIAL)

    assert classifier.dispatch(folder).kind is OutcomeKind.CONTAINER
    assert host.calls[0][0] == "open_container_document"


def test_managed_download_is_handed_to_manager_without_clearing_selection() -> None:
    launcher = FakeLauncher(accepts=ALL)
    classifier, _, _ = _classifier(launcher, root=DOWNLOADS)
    apk = make_doc("app.apk", MIME_TYPE_PACKAGE_ARCHIVE)
    selection = FakeSelection(["app.apk"])

    outcome = classifier.dispatch(apk, selection=selection)

    assert outcome.kind is OutcomeKind.MANAGED_EXTERNAL
    assert [r.action for r in launcher.started] == [HandoffAction.MANAGE]
    assert launcher.started[0].grants == Grant.NONE
    assert selection.cleared == 0


def test_managed_without_handler_falls_through_to_view() -> None:
    launcher = FakeLauncher(accepts=[HandoffAction.VIEW])
    classifier, _, _ = _classifier(launcher, root=DOWNLOADS)
    apk = make_doc("app.apk", MIME_TYPE_PACKAGE_ARCHIVE)

    outcome = classifier.dispatch(apk)

    assert outcome.kind is OutcomeKind.VIEWED_EXTERNALLY
    assert [r.action for r in launcher.started] == [HandoffAction.VIEW]


def test_previewable_document_goes_to_quick_viewer() -> None:
    launcher = FakeLauncher(accepts=ALL)
    classifier, _, _ = _classifier(launcher)

    outcome = classifier.dispatch(make_doc("cat.png", "image/png"))

    assert outcome.kind is OutcomeKind.PREVIEWED
    assert outcome.request.package == "com.example.quickview"
    assert len(launcher.started) == 1


def test_preview_security_rejection_falls_through_to_view() -> None:
    launcher = FakeLauncher(accepts=[HandoffAction.VIEW], rejects=[HandoffAction.PREVIEW])
    classifier, _, _ = _classifier(launcher)

    outcome = classifier.dispatch(make_doc("cat.png", "image/png"))

    assert outcome.kind is OutcomeKind.VIEWED_EXTERNALLY
    assert [r.action for r in launcher.started] == [HandoffAction.VIEW]


def test_no_quick_viewer_means_no_preview() -> None:
    launcher = FakeLauncher(accepts=ALL)
    classifier, _, _ = _classifier(launcher, quick_viewer=None)

    assert classifier.dispatch(make_doc("cat.png", "image/png")).kind is OutcomeKind.VIEWED_EXTERNALLY


def test_ineligible_mime_skips_preview() -> None:
    launcher = FakeLauncher(accepts=ALL)
    classifier, _, _ = _classifier(launcher)

    assert classifier.classify(make_doc("a.bin", "application/octet-stream")).kind is OutcomeKind.VIEWED_EXTERNALLY


@pytest.mark.parametrize(
    ("flags", "expected"),
    [
        (DocFlags.SUPPORTS_WRITE, Grant.READ | Grant.WRITE),
        (DocFlags.NONE, Grant.READ),
    ],
)
def test_view_request_grants_write_only_when_supported(flags, expected) -> None:
    launcher = FakeLauncher(accepts=[HandoffAction.VIEW])
    classifier, _, _ = _classifier(launcher)

    outcome = classifier.dispatch(make_doc("notes.odt", "application/vnd.oasis.opendocument.text", flags))

    assert outcome.request.grants == expected
    assert outcome.request.mime_type == "application/vnd.oasis.opendocument.text"


def test_no_application_found_is_a_failed_outcome_not_an_error() -> None:
    launcher = FakeLauncher()
    classifier, _, dialogs = _classifier(launcher)
    selection = FakeSelection(["x"])

    outcome = classifier.dispatch(make_doc("cat.png", "image/png"), selection=selection)

    assert outcome.kind is OutcomeKind.FAILED
    assert outcome.reason == REASON_NO_APP
    assert dialogs.no_app == 1
    assert selection.cleared == 0


@pytest.mark.parametrize(
    "doc",
    [
        make_doc("app.apk", MIME_TYPE_PACKAGE_ARCHIVE),
        make_doc("cat.png", "image/png"),
        make_doc("a.bin", "application/octet-stream", DocFlags.SUPPORTS_WRITE),
    ],
)
def test_at_most_one_effect_fires(doc) -> None:
    launcher = FakeLauncher(accepts=ALL)
    classifier, host, _ = _classifier(launcher, root=DOWNLOADS)

    outcome = classifier.dispatch(doc)

    assert outcome.kind in (
        OutcomeKind.MANAGED_EXTERNAL,
        OutcomeKind.PREVIEWED,
        OutcomeKind.VIEWED_EXTERNALLY,
    )
    assert len(launcher.started) + len(host.calls) == 1


def test_classify_performs_no_effect() -> None:
    launcher = FakeLauncher(accepts=ALL)
    classifier, host, dialogs = _classifier(launcher, root=DOWNLOADS)

    classifier.classify(make_dir("folder"))
    classifier.classify(make_doc("app.apk", MIME_TYPE_PACKAGE_ARCHIVE))
    classifier.classify(make_doc("a.bin", "application/octet-stream"))

    assert launcher.started == []
    assert host.calls == []
    assert dialogs.no_app == 0


@pytest.mark.parametrize(("managed", "depth", "apk"), list(itertools.product([True, False], [1, 2], [True, False])))
def test_managed_download_table(managed, depth, apk) -> None:
    root = DOWNLOADS if managed else HOME
    classifier, _, _ = _classifier(FakeLauncher(), root=root, depth=depth)
    doc = make_doc("x", MIME_TYPE_PACKAGE_ARCHIVE if apk else "image/png")

    assert classifier.is_managed_download(doc) is (managed and depth == 1 and apk)


def test_partial_flag_qualifies_for_managed_download() -> None:
    classifier, _, _ = _classifier(FakeLauncher(), root=DOWNLOADS)

    assert classifier.is_managed_download(make_doc("movie.mp4", "video/mp4", DocFlags.PARTIAL))
    assert not classifier.is_managed_download(make_doc("movie.mp4", "video/mp4"))


def test_archive_suppression_only_applies_inside_archives() -> None:
    apk = make_doc("app.apk", MIME_TYPE_PACKAGE_ARCHIVE)

    nested_dirs = NavigationStack(DOWNLOADS, make_dir("top"), make_dir("sub"))
    classifier, _, _ = _classifier(FakeLauncher(), root=DOWNLOADS, suppression="archive", stack=nested_dirs)
    assert classifier.is_managed_download(apk)

    archive = make_doc("bundle.zip", "application/zip", DocFlags.ARCHIVE)
    in_archive = NavigationStack(DOWNLOADS, make_dir("top"), archive)
    classifier, _, _ = _classifier(FakeLauncher(), root=DOWNLOADS, suppression="archive", stack=in_archive)
    assert not classifier.is_managed_download(apk)


def test_view_route_skips_preview() -> None:
    launcher = FakeLauncher(accepts=ALL)
    classifier, _, _ = _classifier(launcher)

    outcome = classifier.dispatch(make_doc("cat.png", "image/png"), VIEW_ROUTE)

    assert outcome.kind is OutcomeKind.VIEWED_EXTERNALLY


def test_preview_route_failure_does_not_show_no_app_notice() -> None:
    launcher = FakeLauncher(accepts=[HandoffAction.VIEW])
    classifier, _, dialogs = _classifier(launcher)

    outcome = classifier.dispatch(make_doc("cat.png", "image/png"), PREVIEW_ROUTE)

    assert outcome.kind is OutcomeKind.FAILED
    assert dialogs.no_app == 0
    assert launcher.started == []


def test_missing_document_is_a_defect() -> None:
    classifier, _, _ = _classifier(FakeLauncher())

    with pytest.raises(ValueError):
        classifier.classify(None)  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        classifier.dispatch(None, OPEN_ROUTE)  # type: ignore[arg-type]


def test_mime_pattern_policy_rejects_virtual_documents() -> None:
    policy = MimePatternPreviewPolicy(["image/*"])

    assert policy.is_preview_eligible("image/JPEG", DocFlags.NONE)
    assert not policy.is_preview_eligible("image/jpeg", DocFlags.VIRTUAL)
    assert not policy.is_preview_eligible("video/mp4", DocFlags.NONE)
