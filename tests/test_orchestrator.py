"""
Tests for per-line audio synthesis orchestration.
"""

import threading
from pathlib import Path
from urllib.parse import unquote, urlparse

import pytest

from lyrics_anki_generator.audio.orchestrator import AudioOrchestrator
from lyrics_anki_generator.audio.storage import AudioClipStore
from lyrics_anki_generator.models import LineStatus, OrchestratorState


def uri_to_path(uri: str) -> Path:
    return Path(unquote(urlparse(uri).path))


class TestAudioClipStore:

    def test_save_returns_file_uri(self, tmp_path):
        store = AudioClipStore(tmp_path)
        uri = store.save("Bella Ciao", 3, b"audio")

        assert uri.startswith("file://")
        path = uri_to_path(uri)
        assert path.name == "Bella_Ciao_line_003_00000003.mp3"
        assert path.read_bytes() == b"audio"

    def test_content_distinguishes_colliding_titles(self, tmp_path):
        store = AudioClipStore(tmp_path)
        first = store.clip_path("Hello!", 0, "en-US\n/hello/")
        second = store.clip_path("Hello?", 0, "en-US\n/goodbye/")

        assert first != second
        assert first.name.startswith("Hello_line_000_")

    def test_creates_directory(self, tmp_path):
        store = AudioClipStore(tmp_path / "nested" / "audio")
        assert store.output_dir.is_dir()

    def test_default_directory_is_temporary(self):
        store = AudioClipStore()
        assert store.output_dir.is_dir()
        assert store.output_dir.name.startswith("lyrics_anki_audio_")


class TestAudioOrchestrator:
    """Test the sequential orchestration of line audio."""

    @pytest.fixture
    def store(self, tmp_path):
        return AudioClipStore(tmp_path)

    def test_skips_blank_lines(self, hello_world_analysis, fake_synthesizer, store):
        orchestrator = AudioOrchestrator(fake_synthesizer, store)

        assert orchestrator.run(hello_world_analysis)

        assert fake_synthesizer.calls == ["/hello/", "/world/"]
        assert hello_world_analysis.lines[1].audio_ref is None
        assert orchestrator.synthesized == [0, 2]
        assert orchestrator.skipped == [1]

    def test_populates_audio_refs(self, hello_world_analysis, fake_synthesizer, store):
        AudioOrchestrator(fake_synthesizer, store).run(hello_world_analysis)

        hello = hello_world_analysis.lines[0]
        assert hello.audio_ref.startswith("file://")
        assert uri_to_path(hello.audio_ref).read_bytes() == b"ID3/hello/"

    def test_existing_audio_is_never_replaced(self, hello_world_analysis, fake_synthesizer, store):
        hello_world_analysis.lines[0].audio_ref = "https://example.com/hello.mp3"

        orchestrator = AudioOrchestrator(fake_synthesizer, store)
        orchestrator.run(hello_world_analysis)

        assert hello_world_analysis.lines[0].audio_ref == "https://example.com/hello.mp3"
        assert fake_synthesizer.calls == ["/world/"]
        assert orchestrator.skipped == [0, 1]

    def test_failure_does_not_stop_remaining_lines(self, analysis_factory, synthesizer_factory, store):
        analysis = analysis_factory(["One", "Two", "Three"])
        synthesizer = synthesizer_factory(fail_ipa=["/two/"])

        orchestrator = AudioOrchestrator(synthesizer, store)
        orchestrator.run(analysis)

        assert synthesizer.calls == ["/one/", "/two/", "/three/"]
        assert analysis.lines[0].audio_ref is not None
        assert analysis.lines[1].audio_ref is None
        assert analysis.lines[2].audio_ref is not None
        assert list(orchestrator.failed) == [1]

    def test_unexpected_exceptions_are_contained(self, analysis_factory, store):
        class BrokenSynthesizer:
            def synthesize(self, ipa, language_code):
                raise RuntimeError("boom")

        analysis = analysis_factory(["One", "Two"])
        orchestrator = AudioOrchestrator(BrokenSynthesizer(), store)

        assert orchestrator.run(analysis)
        assert orchestrator.failed == {0: "boom", 1: "boom"}
        assert orchestrator.state is OrchestratorState.DONE

    def test_songs_with_colliding_titles_keep_their_own_audio(self, analysis_factory, synthesizer_factory,
                                                              store):
        first_song = analysis_factory(["Hello"], title="Hello!")
        second_song = analysis_factory(["Goodbye"], title="Hello?")

        AudioOrchestrator(synthesizer_factory(), store).run(first_song)
        AudioOrchestrator(synthesizer_factory(), store).run(second_song)

        first_ref = first_song.lines[0].audio_ref
        second_ref = second_song.lines[0].audio_ref
        assert first_ref != second_ref
        assert uri_to_path(first_ref).read_bytes() == b"ID3/hello/"
        assert uri_to_path(second_ref).read_bytes() == b"ID3/goodbye/"

    def test_failing_status_callback_does_not_stop_run(self, analysis_factory, fake_synthesizer, store):
        received = []

        def broken_callback(event):
            raise RuntimeError("listener crashed")

        analysis = analysis_factory(["One", "Two", "Three"])
        orchestrator = AudioOrchestrator(fake_synthesizer, store)
        orchestrator.add_status_callback(broken_callback)
        orchestrator.add_status_callback(received.append)

        assert orchestrator.run(analysis)

        assert orchestrator.synthesized == [0, 1, 2]
        assert all(line.audio_ref for line in analysis.lines)
        assert orchestrator.loading_indices == frozenset()
        assert len(received) == 6
        assert orchestrator.state is OrchestratorState.DONE

    def test_runs_only_once(self, hello_world_analysis, fake_synthesizer, store):
        orchestrator = AudioOrchestrator(fake_synthesizer, store)

        assert orchestrator.state is OrchestratorState.NOT_STARTED
        assert orchestrator.run(hello_world_analysis) is True
        assert orchestrator.run(hello_world_analysis) is False

        assert orchestrator.state is OrchestratorState.DONE
        assert len(fake_synthesizer.calls) == 2

    def test_status_events_in_line_order(self, hello_world_analysis, fake_synthesizer, store):
        events = []
        orchestrator = AudioOrchestrator(fake_synthesizer, store)
        orchestrator.add_status_callback(events.append)

        orchestrator.run(hello_world_analysis)

        assert [(e.index, e.status) for e in events] == [
            (0, LineStatus.LOADING),
            (0, LineStatus.DONE),
            (1, LineStatus.SKIPPED),
            (2, LineStatus.LOADING),
            (2, LineStatus.DONE),
        ]
        assert events[2].message == "blank line"
        assert events[1].message == hello_world_analysis.lines[0].audio_ref

    def test_loading_indices_track_current_line(self, analysis_factory, store):
        observed = []

        class ObservingSynthesizer:
            def synthesize(self, ipa, language_code):
                observed.append(orchestrator.loading_indices)
                return b"audio"

        analysis = analysis_factory(["One", "Two"])
        orchestrator = AudioOrchestrator(ObservingSynthesizer(), store)
        orchestrator.run(analysis)

        assert observed == [frozenset({0}), frozenset({1})]
        assert orchestrator.loading_indices == frozenset()

    def test_loading_cleared_after_failure(self, analysis_factory, synthesizer_factory, store):
        orchestrator = AudioOrchestrator(synthesizer_factory(fail_ipa=["/one/"]), store)
        orchestrator.run(analysis_factory(["One"]))
        assert orchestrator.loading_indices == frozenset()

    def test_summary(self, analysis_factory, synthesizer_factory, store):
        analysis = analysis_factory(["One", "", "Three"])
        orchestrator = AudioOrchestrator(synthesizer_factory(fail_ipa=["/three/"]), store)
        orchestrator.run(analysis)

        summary = orchestrator.get_summary()
        assert summary['state'] == 'done'
        assert summary['synthesized'] == 1
        assert summary['skipped'] == 1
        assert summary['failed'] == 1
        assert list(summary['failed_lines']) == [2]

    def test_language_code_passed_to_synthesizer(self, analysis_factory, store):
        seen = []

        class RecordingSynthesizer:
            def synthesize(self, ipa, language_code):
                seen.append(language_code)
                return b"audio"

        analysis = analysis_factory(["Ciao"], language_code="it-IT")
        AudioOrchestrator(RecordingSynthesizer(), store).run(analysis)
        assert seen == ["it-IT"]

    def test_rejects_invalid_worker_count(self, fake_synthesizer, store):
        with pytest.raises(ValueError):
            AudioOrchestrator(fake_synthesizer, store, max_workers=0)


class TestPooledAudioOrchestrator:
    """Test the bounded worker pool mode."""

    def test_all_lines_synthesized(self, analysis_factory, fake_synthesizer, tmp_path):
        analysis = analysis_factory(["One", "Two", "", "Four", "Five"])
        orchestrator = AudioOrchestrator(fake_synthesizer, AudioClipStore(tmp_path), max_workers=3)

        assert orchestrator.run(analysis)

        assert sorted(orchestrator.synthesized) == [0, 1, 3, 4]
        assert orchestrator.skipped == [2]
        assert all(line.audio_ref for line in analysis.lines if not line.is_blank)

    def test_completion_events_in_line_order(self, analysis_factory, fake_synthesizer, tmp_path):
        completed = []
        orchestrator = AudioOrchestrator(fake_synthesizer, AudioClipStore(tmp_path), max_workers=4)
        orchestrator.add_status_callback(
            lambda e: completed.append(e.index) if e.status is not LineStatus.LOADING else None
        )

        orchestrator.run(analysis_factory(["One", "Two", "", "Four"]))
        assert completed == [0, 1, 2, 3]

    def test_concurrency_is_bounded(self, analysis_factory, tmp_path):
        lock = threading.Lock()
        active = [0]
        peak = [0]

        class CountingSynthesizer:
            def synthesize(self, ipa, language_code):
                with lock:
                    active[0] += 1
                    peak[0] = max(peak[0], active[0])
                threading.Event().wait(0.01)
                with lock:
                    active[0] -= 1
                return b"audio"

        analysis = analysis_factory([f"Line {i}" for i in range(8)])
        AudioOrchestrator(CountingSynthesizer(), AudioClipStore(tmp_path), max_workers=2).run(analysis)

        assert peak[0] <= 2
