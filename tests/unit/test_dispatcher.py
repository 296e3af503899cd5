"""Tests for the channel dispatcher: ordering, priority, deadline and entry points."""

import time

import pytest

from provenance.core import patterns as P
from provenance.core.buffer_pool import BufferPool
from provenance.core.dispatcher import ProvenanceDispatcher, select_result
from provenance.models.enums import Method
from provenance.models.schemas import DetectionResult, EvidenceInput


@pytest.fixture
def dispatcher():
    d = ProvenanceDispatcher(pool=BufferPool())
    yield d
    d.shutdown()


MJ_TEXT = b"Job ID: 12345 --ar 16:9"


class TestSequential:
    def test_no_markers(self, dispatcher, plain_bytes):
        result = dispatcher.detect_from_bytes(plain_bytes)
        assert result == DetectionResult.no_match()
        assert result.to_dict() == {"matched": False, "provider": "", "method": "", "details": ""}

    def test_empty_input(self, dispatcher):
        assert not dispatcher.detect_from_bytes(b"").matched

    def test_midjourney_text(self, dispatcher):
        result = dispatcher.detect_from_bytes(MJ_TEXT)
        assert result.matched
        assert result.provider == P.MIDJOURNEY
        assert result.method == Method.BINARY

    def test_c2pa_short_circuits_exif(self, dispatcher, software_jpeg):
        result = dispatcher.detect_from_bytes(software_jpeg + b"c2pa.manifest")
        assert result.method == Method.C2PA
        assert result.provider == P.UNKNOWN_C2PA

    def test_exif_before_xmp(self, dispatcher, software_jpeg, iptc_xmp):
        result = dispatcher.detect_from_bytes(software_jpeg, iptc_xmp())
        assert result.method == Method.EXIF
        assert result.provider == P.MIDJOURNEY

    def test_xmp_only(self, dispatcher, plain_bytes, iptc_xmp):
        result = dispatcher.detect_from_bytes(plain_bytes, iptc_xmp())
        assert result.method == Method.XMP
        assert result.provider == P.IPTC_TRAINED

    def test_failing_channel_is_no_match(self, dispatcher, software_jpeg, monkeypatch):
        def boom(image, xmp):
            raise RuntimeError("corrupt input")

        monkeypatch.setattr(dispatcher.c2pa, "_scan", boom)
        result = dispatcher.detect_from_bytes(software_jpeg)
        assert result.provider == P.MIDJOURNEY

    def test_analyze_bytes(self, dispatcher):
        assert dispatcher.analyze(EvidenceInput(image_bytes=MJ_TEXT)).provider == P.MIDJOURNEY

    def test_analyze_path(self, dispatcher, tmp_path, software_jpeg):
        path = tmp_path / "upload.jpg"
        path.write_bytes(software_jpeg)
        assert dispatcher.analyze(EvidenceInput(file_path=path)).provider == P.MIDJOURNEY


class TestDetectFile:
    def test_file(self, dispatcher, tmp_path, software_jpeg):
        path = tmp_path / "mj.jpg"
        path.write_bytes(software_jpeg)
        result = dispatcher.detect(path)
        assert result.provider == P.MIDJOURNEY
        assert result.details == "Midjourney v6"

    def test_missing_file(self, dispatcher, tmp_path):
        assert dispatcher.detect(tmp_path / "nope.jpg") == DetectionResult.no_match()

    def test_xmp_extracted_from_file(self, dispatcher, tmp_path, plain_bytes, iptc_xmp):
        path = tmp_path / "iptc.jpg"
        path.write_bytes(plain_bytes + iptc_xmp())
        result = dispatcher.detect(str(path))
        assert result.method == Method.XMP
        assert result.provider == P.IPTC_TRAINED

    def test_explicit_xmp_wins(self, dispatcher, tmp_path, plain_bytes):
        path = tmp_path / "plain.jpg"
        path.write_bytes(plain_bytes)
        result = dispatcher.detect(path, b"<xmp:CreatorTool>Adobe Firefly</xmp:CreatorTool>")
        assert result.provider == P.ADOBE_FIREFLY


class TestFast:
    def test_small_buffer(self, dispatcher):
        assert not dispatcher.detect_fast(b"midjourney").matched

    def test_large_buffer(self, dispatcher):
        data = b"\x00" * 1200 + b"--stylize 750" + b"\x00" * 64
        result = dispatcher.detect_fast(data)
        assert result.provider == P.MIDJOURNEY
        assert result.method == Method.BINARY

    def test_plain(self, dispatcher, plain_bytes):
        assert not dispatcher.detect_fast(plain_bytes).matched


class TestConcurrent:
    @pytest.mark.asyncio
    async def test_no_markers(self, dispatcher, plain_bytes):
        assert await dispatcher.detect_concurrent(plain_bytes) == DetectionResult.no_match()

    @pytest.mark.asyncio
    async def test_priority_c2pa_over_exif(self, dispatcher, software_jpeg):
        result = await dispatcher.detect_concurrent(software_jpeg + b"c2pa.manifest")
        assert result.method == Method.C2PA

    @pytest.mark.asyncio
    async def test_matches_sequential(self, dispatcher, plain_bytes, software_jpeg, iptc_xmp):
        cases = [
            (plain_bytes, None),
            (software_jpeg, None),
            (MJ_TEXT, None),
            (plain_bytes, iptc_xmp()),
            (software_jpeg + b"JUMBF", b"<x>Adobe Firefly</x>"),
        ]
        for image, xmp in cases:
            assert await dispatcher.detect_concurrent(image, xmp) == dispatcher.detect_from_bytes(image, xmp)

    @pytest.mark.asyncio
    async def test_deadline_is_fail_open(self, software_jpeg, monkeypatch):
        d = ProvenanceDispatcher(timeout=0.05, pool=BufferPool())

        def slow(image, xmp):
            time.sleep(0.5)
            return DetectionResult.hit(P.MIDJOURNEY, Method.BINARY)

        for channel in d.channels:
            monkeypatch.setattr(channel, "_scan", slow)
        start = time.perf_counter()
        try:
            result = await d.detect_concurrent(software_jpeg + b"c2pa")
        finally:
            d.shutdown()
        assert result == DetectionResult.no_match()
        assert time.perf_counter() - start < 0.4

    @pytest.mark.asyncio
    async def test_one_late_channel_voids_matches(self, software_jpeg, monkeypatch):
        d = ProvenanceDispatcher(timeout=0.05, pool=BufferPool())

        def slow(image, xmp):
            time.sleep(0.5)
            return None

        monkeypatch.setattr(d.xmp, "_scan", slow)
        try:
            # c2pa and exif both match, but one channel misses the deadline
            result = await d.detect_concurrent(software_jpeg + b"c2pa")
        finally:
            d.shutdown()
        assert result == DetectionResult.no_match()

    @pytest.mark.asyncio
    async def test_cpu_bound_stragglers(self, plain_bytes, monkeypatch):
        d = ProvenanceDispatcher(timeout=0.05, pool=BufferPool())

        def spin(image, xmp):
            end = time.perf_counter() + 0.5
            while time.perf_counter() < end:
                pass
            return None

        for channel in d.channels:
            monkeypatch.setattr(channel, "_scan", spin)
        start = time.perf_counter()
        try:
            result = await d.detect_concurrent(plain_bytes)
        finally:
            d.shutdown()
        assert not result.matched
        assert time.perf_counter() - start < 0.4

    @pytest.mark.asyncio
    async def test_hostile_xmp_within_deadline(self, dispatcher):
        xmp = b"<x:xmpmeta>" + b"black forest " * 800 + b"made with google " * 600 + b"</x:xmpmeta>"
        start = time.perf_counter()
        result = await dispatcher.detect_concurrent(b"c2pa manifest", xmp)
        assert time.perf_counter() - start < 1.0
        assert result.method == Method.C2PA
        assert result.provider == P.UNKNOWN_C2PA

    @pytest.mark.asyncio
    async def test_failing_channel(self, dispatcher, software_jpeg, monkeypatch):
        def boom(image, xmp):
            raise ValueError("bad block")

        monkeypatch.setattr(dispatcher.exif, "_scan", boom)
        result = await dispatcher.detect_concurrent(software_jpeg)
        # the Software text is still visible to the binary channel
        assert result.method == Method.BINARY
        assert result.provider == P.MIDJOURNEY


class TestSelectResult:
    def test_priority_order(self):
        from provenance.core.base_channel import ChannelOutcome

        outcomes = {
            Method.XMP: ChannelOutcome(method=Method.XMP, result=DetectionResult.hit(P.GROK, Method.XMP)),
            Method.BINARY: ChannelOutcome(method=Method.BINARY, result=DetectionResult.hit(P.FLUX, Method.BINARY)),
            Method.EXIF: ChannelOutcome(method=Method.EXIF),
        }
        assert select_result(outcomes).provider == P.FLUX

    def test_empty(self):
        assert not select_result({}).matched


class TestModuleLevel:
    def test_entry_points(self, plain_bytes):
        from provenance import detect_fast, detect_from_bytes

        assert detect_from_bytes(MJ_TEXT).provider == P.MIDJOURNEY
        assert not detect_fast(plain_bytes).matched

    @pytest.mark.asyncio
    async def test_concurrent_entry_point(self):
        from provenance import detect_concurrent

        assert (await detect_concurrent(MJ_TEXT)).provider == P.MIDJOURNEY

    def test_generic_terms_override(self):
        d = ProvenanceDispatcher(generic_terms=True, pool=BufferPool())
        try:
            assert d.binary.generic_terms is True
        finally:
            d.shutdown()
