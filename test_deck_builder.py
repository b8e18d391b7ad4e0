#!/usr/bin/env python3
"""
End-to-end tests for the deck builder with an in-memory Whisk client.

Thumbnails are replaced by a fake so the tests do not need LibreOffice.
"""

import asyncio
import base64
import io
import os
import sys
import time

import pytest
from PIL import Image
from pptx import Presentation

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from ai_pptx.core.deck_builder import DeckBuilder
from ai_pptx.core.style_consistency import StyleConsistencyOrchestrator
from ai_pptx.errors import AssemblyError, ThumbnailError
from ai_pptx.models.backgrounds import BackgroundSource
from ai_pptx.models.build import BuildConfig, BuildPhase
from ai_pptx.models.generation import AnalysisResult, Credential, GenerationResult
from ai_pptx.rendering.html_assembler import HtmlSlideAssembler
from ai_pptx.utils.token_store import StaticCredentialProvider


def _png_b64() -> str:
    buffer = io.BytesIO()
    Image.new("RGB", (64, 36), (48, 43, 99)).save(buffer, format="PNG")
    return base64.b64encode(buffer.getvalue()).decode("ascii")


PNG_B64 = _png_b64()
CREDENTIAL = Credential(access_token="test-token", expires_at=int(time.time() * 1000) + 3_600_000)

SLIDES = [
    {"type": "title", "title": "AI-Powered Presentation", "subtitle": "Demo", "date": "01.01.2026"},
    {"type": "content", "title": "Key Features", "bullets": ["One", "Two"]},
    {"type": "data", "title": "Metrics", "metrics": [{"value": "5s", "label": "Time"}], "chartLabel": "Chart"},
]


class FakeWhiskClient:
    """Succeeds on every call except the 0-based generation numbers in `fail_generations`."""

    def __init__(self, fail_generations=()):
        self.fail_generations = set(fail_generations)
        self.generation_count = 0

    def _result(self):
        number = self.generation_count
        self.generation_count += 1
        if number in self.fail_generations:
            return GenerationResult.failed("HTTP 500: generation failed")
        return GenerationResult.ok([PNG_B64])

    async def generate_from_text(self, prompt, aspect_ratio, credential):
        return self._result()

    async def generate_from_references(self, prompt, aspect_ratio, credential, references):
        return self._result()

    async def analyze_image(self, image_bytes, category, credential):
        return AnalysisResult(success=True, media_id="media-anchor", caption="anchor")


class FakeThumbnails:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    async def generate(self, pptx_path, output_prefix, cols=None):
        self.calls.append(pptx_path)
        if self.error:
            raise self.error
        out = f"{output_prefix}.jpg"
        Image.new("RGB", (10, 10)).save(out, format="JPEG")
        return out


class FailingAssembler(HtmlSlideAssembler):
    def append_slide(self, html_path, presentation):
        raise AssemblyError("conversion failed", str(html_path))


def _builder(client=None, credential=CREDENTIAL, thumbnails=None, **kwargs):
    orchestrator = StyleConsistencyOrchestrator(
        client or FakeWhiskClient(), StaticCredentialProvider(credential), aspect_ratio="16:9"
    )
    return DeckBuilder(
        orchestrator,
        thumbnails=thumbnails or FakeThumbnails(),
        thumbnails_enabled=kwargs.pop("thumbnails_enabled", True),
        **kwargs
    )


def _config(tmp_path, slides=None, name="demo"):
    return BuildConfig(name=name, style="dark minimalist", slides=slides or SLIDES, output_base=tmp_path)


def test_full_build_layout(tmp_path):
    builder = _builder()

    result = asyncio.run(builder.build(_config(tmp_path)))

    output_dir = tmp_path / "outputs" / "demo"
    assert result.output_dir == output_dir
    assert result.pptx_path == output_dir / "presentation.pptx"
    assert result.phase == BuildPhase.DONE
    assert builder.phase == BuildPhase.DONE
    assert [p.name for p in result.html_files] == ["slide0-title.html", "slide1-content.html", "slide2-data.html"]
    assert [p.name for p in result.backgrounds.paths] == ["bg-0-title.png", "bg-1-content.png", "bg-2-data.png"]
    assert all(p.parent == output_dir / "images" for p in result.backgrounds.paths)
    assert len(Presentation(str(result.pptx_path)).slides) == 3
    assert result.thumbnail_path is not None


def test_html_references_its_background(tmp_path):
    result = asyncio.run(_builder().build(_config(tmp_path)))

    for html_file, background in zip(result.html_files, result.backgrounds.entries):
        assert background.path.resolve().as_uri() in html_file.read_text(encoding="utf-8")


def test_unavailable_whisk_uses_fallbacks_for_every_slide(tmp_path):
    client = FakeWhiskClient()

    result = asyncio.run(_builder(client=client, credential=None).build(_config(tmp_path)))

    assert client.generation_count == 0
    assert len(result.backgrounds) == 3
    assert all(b.source == BackgroundSource.FALLBACK for b in result.backgrounds.entries)
    assert all(p.is_file() for p in result.backgrounds.paths)
    assert len(Presentation(str(result.pptx_path)).slides) == 3


def test_anchor_failure_uses_fallbacks_for_every_slide(tmp_path):
    client = FakeWhiskClient(fail_generations={0})

    result = asyncio.run(_builder(client=client).build(_config(tmp_path)))

    assert client.generation_count == 1
    assert result.backgrounds.fallback_count == 3


def test_third_background_failure_is_isolated(tmp_path):
    """[title, content, data]: the data background falls back, the deck still has 3 slides."""
    result = asyncio.run(_builder(client=FakeWhiskClient(fail_generations={2})).build(_config(tmp_path)))

    assert [b.source for b in result.backgrounds.entries] == [
        BackgroundSource.GENERATED, BackgroundSource.GENERATED, BackgroundSource.FALLBACK
    ]
    assert result.backgrounds[2].path.name == "bg-2-data.png"
    assert len(Presentation(str(result.pptx_path)).slides) == 3
    assert [(p.id, p.slide_index) for p in result.placeholders] == [("chart-area", 2)]


def test_unknown_slide_type_is_skipped(tmp_path):
    slides = [SLIDES[0], {"type": "agenda", "items": ["a", "b"]}, {"type": "closing", "contactLines": ["bye"]}]

    result = asyncio.run(_builder().build(_config(tmp_path, slides=slides)))

    # A background is still produced for every input slide
    assert len(result.backgrounds) == 3
    assert [p.name for p in result.html_files] == ["slide0-title.html", "slide2-closing.html"]
    assert len(Presentation(str(result.pptx_path)).slides) == 2


def test_thumbnail_failure_is_not_fatal(tmp_path):
    thumbnails = FakeThumbnails(error=ThumbnailError("soffice missing"))

    result = asyncio.run(_builder(thumbnails=thumbnails).build(_config(tmp_path)))

    assert thumbnails.calls == [result.pptx_path]
    assert result.thumbnail_path is None
    assert result.phase == BuildPhase.DONE
    assert result.pptx_path.is_file()


def test_thumbnails_can_be_disabled(tmp_path):
    thumbnails = FakeThumbnails()

    result = asyncio.run(_builder(thumbnails=thumbnails, thumbnails_enabled=False).build(_config(tmp_path)))

    assert thumbnails.calls == []
    assert result.thumbnail_path is None


def test_assembly_failure_propagates_and_keeps_files(tmp_path):
    builder = _builder(assembler=FailingAssembler())

    with pytest.raises(AssemblyError):
        asyncio.run(builder.build(_config(tmp_path)))

    output_dir = tmp_path / "outputs" / "demo"
    assert builder.phase == BuildPhase.MARKUP_READY
    assert not (output_dir / "presentation.pptx").exists()
    assert (output_dir / "slide0-title.html").is_file()
    assert (output_dir / "images" / "bg-0-title.png").is_file()


def test_invalid_config_is_rejected(tmp_path):
    with pytest.raises(ValueError):
        BuildConfig(name="a/b", style="x", slides=SLIDES)
    with pytest.raises(ValueError):
        BuildConfig(name="ok", style="x", slides=[])


@pytest.mark.parametrize("name", ["Q3 (final)", "O'Neil deck"])
def test_names_with_quotes_and_parentheses_build(tmp_path, name):
    slides = [{"type": "title", "title": "T"}]

    result = asyncio.run(_builder(credential=None).build(_config(tmp_path, slides=slides, name=name)))

    assert result.output_dir == tmp_path / "outputs" / name
    assert len(Presentation(str(result.pptx_path)).slides) == 1


def test_unknown_type_with_path_separator_is_skipped(tmp_path):
    slides = [SLIDES[0], {"type": "chart/pie", "title": "Pie"}]

    result = asyncio.run(_builder(credential=None).build(_config(tmp_path, slides=slides)))

    assert result.backgrounds[1].path == tmp_path / "outputs" / "demo" / "images" / "bg-1-chart_pie.png"
    assert result.backgrounds[1].path.is_file()
    assert [p.name for p in result.html_files] == ["slide0-title.html"]
    assert len(Presentation(str(result.pptx_path)).slides) == 1
