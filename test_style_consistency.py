#!/usr/bin/env python3
"""
Tests for the style-consistency orchestrator.

Uses an in-memory Whisk client that records every generation request,
so the anchor/follower sequencing and reference threading can be checked
without the network.
"""

import asyncio
import base64
import io
import os
import sys
import time

import pytest
from PIL import Image

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from ai_pptx.core.style_consistency import (
    StyleConsistencyOrchestrator,
    build_background_prompt,
)
from ai_pptx.models.backgrounds import BackgroundSource
from ai_pptx.models.generation import AnalysisResult, Credential, GenerationResult
from ai_pptx.models.slides import parse_slides
from ai_pptx.utils.token_store import StaticCredentialProvider


def _png_bytes(color=(20, 40, 80)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (32, 18), color).save(buffer, format="PNG")
    return buffer.getvalue()


PNG_BYTES = _png_bytes()
PNG_B64 = base64.b64encode(PNG_BYTES).decode("ascii")

CREDENTIAL = Credential(access_token="test-token", expires_at=int(time.time() * 1000) + 3_600_000)


class FakeWhiskClient:
    """
    Records generation requests as (path, prompt, references).

    fail_generations: 0-based generation call numbers that fail
    fail_analyses:    1-based analyze_image call numbers whose upload fails
    """

    def __init__(self, fail_generations=(), fail_analyses=(), image_b64=PNG_B64):
        self.fail_generations = set(fail_generations)
        self.fail_analyses = set(fail_analyses)
        self.image_b64 = image_b64
        self.generations = []
        self.analyzed = []

    def _result(self, path, prompt, references):
        call_number = len(self.generations)
        self.generations.append((path, prompt, references))
        if call_number in self.fail_generations:
            return GenerationResult.failed("HTTP 500: generation failed")
        return GenerationResult.ok([self.image_b64])

    async def generate_from_text(self, prompt, aspect_ratio, credential):
        return self._result("text", prompt, [])

    async def generate_from_references(self, prompt, aspect_ratio, credential, references):
        return self._result("references", prompt, list(references))

    async def analyze_image(self, image_bytes, category, credential):
        self.analyzed.append(image_bytes)
        number = len(self.analyzed)
        if number in self.fail_analyses:
            return AnalysisResult(success=False, error="Upload HTTP 500")
        return AnalysisResult(success=True, media_id=f"media-{number}", caption=f"caption {number}")


def _slides(*types):
    return parse_slides([{"type": t, "title": t.title()} for t in types])


def _orchestrator(client, credential=CREDENTIAL):
    return StyleConsistencyOrchestrator(client, StaticCredentialProvider(credential), aspect_ratio="16:9")


def _write_refs(directory, count):
    paths = []
    for i in range(count):
        path = directory / f"ref{i}.png"
        path.write_bytes(_png_bytes((i * 40, 10, 10)))
        paths.append(path)
    return paths


def _run(orchestrator, output_dir, slides, refs=None, style="dark minimalist with neon accents"):
    return asyncio.run(orchestrator.generate_backgrounds(output_dir, style, refs or [], slides))


# --------------------------------------------------------------------------- #
# Prompts
# --------------------------------------------------------------------------- #


def test_prompt_for_known_type():
    prompt = build_background_prompt("dark minimalist", "title")

    assert prompt == (
        "dark minimalist. Central focal point, slightly darker edges, space for centered text. "
        "No text, no logos, no people. Abstract background only. 16:9."
    )


def test_prompt_for_unknown_type_has_no_empty_instruction():
    prompt = build_background_prompt("dark minimalist", "agenda")

    assert prompt == "dark minimalist. No text, no logos, no people. Abstract background only. 16:9."


# --------------------------------------------------------------------------- #
# Availability gates
# --------------------------------------------------------------------------- #


def test_no_credential_returns_none_without_calls(tmp_path):
    client = FakeWhiskClient()

    result = _run(_orchestrator(client, credential=None), tmp_path, _slides("title", "content"))

    assert result is None
    assert client.generations == []
    assert client.analyzed == []


def test_anchor_failure_returns_none(tmp_path):
    client = FakeWhiskClient(fail_generations={0})

    result = _run(_orchestrator(client), tmp_path, _slides("title", "content", "closing"))

    assert result is None
    assert len(client.generations) == 1
    assert not (tmp_path / "bg-0-title.png").exists()


def test_undecodable_anchor_returns_none(tmp_path):
    client = FakeWhiskClient(image_b64="***not base64***")

    assert _run(_orchestrator(client), tmp_path, _slides("title", "content")) is None


def test_empty_slides_rejected(tmp_path):
    with pytest.raises(ValueError):
        _run(_orchestrator(FakeWhiskClient()), tmp_path, [])


# --------------------------------------------------------------------------- #
# Sequencing
# --------------------------------------------------------------------------- #


def test_one_entry_per_slide_in_order(tmp_path):
    slides = _slides("title", "content", "data", "features", "closing")
    client = FakeWhiskClient()

    backgrounds = _run(_orchestrator(client), tmp_path, slides)

    assert len(backgrounds) == 5
    assert [b.index for b in backgrounds.entries] == [0, 1, 2, 3, 4]
    assert [b.slide_type for b in backgrounds.entries] == ["title", "content", "data", "features", "closing"]
    assert backgrounds.fallback_count == 0
    assert [p.name for p in backgrounds.paths] == [
        "bg-0-title.png", "bg-1-content.png", "bg-2-data.png", "bg-3-features.png", "bg-4-closing.png"
    ]
    assert (tmp_path / "bg-0-title.png").read_bytes() == PNG_BYTES


def test_prompts_follow_slide_types(tmp_path):
    client = FakeWhiskClient()

    _run(_orchestrator(client), tmp_path, _slides("title", "data"), style="corporate blue")

    assert [prompt for _, prompt, _ in client.generations] == [
        build_background_prompt("corporate blue", "title"),
        build_background_prompt("corporate blue", "data"),
    ]


def test_without_user_refs_followers_cite_only_the_anchor(tmp_path):
    client = FakeWhiskClient()

    _run(_orchestrator(client), tmp_path, _slides("title", "content", "closing"))

    anchor_path, _, anchor_refs = client.generations[0]
    assert anchor_path == "text"
    assert anchor_refs == []

    # The anchor image itself was analyzed
    assert client.analyzed == [PNG_BYTES]

    for path, _, refs in client.generations[1:]:
        assert path == "references"
        assert [r.media_id for r in refs] == ["media-1"]
        assert refs[0].caption == "caption 1"


@pytest.mark.parametrize("ref_count", [0, 1, 2, 3])
def test_reference_count_selects_generation_path(tmp_path, ref_count):
    """Anchor uses text-only without refs; followers always cite user refs + anchor."""
    refs = _write_refs(tmp_path, ref_count)
    client = FakeWhiskClient()

    backgrounds = _run(_orchestrator(client), tmp_path / "images", _slides("title", "content"), refs=refs)

    assert backgrounds is not None
    anchor_path, _, anchor_refs = client.generations[0]
    assert anchor_path == ("text" if ref_count == 0 else "references")
    assert len(anchor_refs) == ref_count

    follower_path, _, follower_refs = client.generations[1]
    assert follower_path == "references"
    assert len(follower_refs) == ref_count + 1
    # Anchor reference is appended after the user references
    assert follower_refs[-1].media_id == f"media-{ref_count + 1}"


def test_missing_and_failed_refs_are_skipped(tmp_path):
    refs = _write_refs(tmp_path, 2)
    refs.insert(1, tmp_path / "does-not-exist.png")
    # Second existing ref fails to upload
    client = FakeWhiskClient(fail_analyses={2})

    _run(_orchestrator(client), tmp_path / "images", _slides("title", "content"), refs=refs)

    _, _, anchor_refs = client.generations[0]
    assert [r.media_id for r in anchor_refs] == ["media-1"]
    _, _, follower_refs = client.generations[1]
    assert [r.media_id for r in follower_refs] == ["media-1", "media-3"]


def test_anchor_upload_failure_keeps_anchor_background(tmp_path):
    client = FakeWhiskClient(fail_analyses={1})

    backgrounds = _run(_orchestrator(client), tmp_path, _slides("title", "content"))

    assert backgrounds[0].source == BackgroundSource.GENERATED
    # No references at all, so the follower is text-only
    assert client.generations[1][0] == "text"


# --------------------------------------------------------------------------- #
# Partial failure
# --------------------------------------------------------------------------- #


def test_follower_failure_falls_back_for_that_slide_only(tmp_path):
    """[title, content, data] with the data generation failing."""
    client = FakeWhiskClient(fail_generations={2})

    backgrounds = _run(_orchestrator(client), tmp_path, _slides("title", "content", "data"))

    assert len(backgrounds) == 3
    assert [b.source for b in backgrounds.entries] == [
        BackgroundSource.GENERATED, BackgroundSource.GENERATED, BackgroundSource.FALLBACK
    ]
    assert backgrounds[2].path == tmp_path / "bg-2-data.png"
    assert backgrounds[2].path.is_file()
    assert backgrounds.fallback_count == 1


def test_middle_failure_does_not_stop_the_fold(tmp_path):
    client = FakeWhiskClient(fail_generations={1})

    backgrounds = _run(_orchestrator(client), tmp_path, _slides("title", "content", "features", "closing"))

    assert len(client.generations) == 4
    assert [b.is_fallback for b in backgrounds.entries] == [False, True, False, False]
    # Later slides still cite the anchor
    assert [r.media_id for r in client.generations[3][2]] == ["media-1"]
