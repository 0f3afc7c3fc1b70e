"""Pytest configuration providing shared fixtures and canned HTML pages."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Iterable

import httpx
import pytest

from refscrape.config import ConfigLocator, ConfigRepository, GlobalConfig, SiteProfile

INDEX_URL = "https://docs.example.com/x86/"

INDEX_HTML = """
<html><body>
<h1>x86 reference</h1>
<h2>Core Instructions</h2>
<table>
  <tr><th>Mnemonic</th><th>Summary</th></tr>
  <tr><td><a href="/x86/aaa">AAA</a></td><td>ASCII adjust</td></tr>
  <tr><td><a href="add">ADD</a></td><td>Add</td></tr>
  <tr><td><a href="https://docs.example.com/x86/cpuid">CPUID</a></td><td>CPU id</td></tr>
</table>
<h2>Legacy Notes</h2>
<table>
  <tr><th>Mnemonic</th></tr>
  <tr><td><a href="/x86/ignored">IGNORED</a></td></tr>
</table>
<h2>VMX Instructions</h2>
<table>
  <tr><th>Mnemonic</th></tr>
  <tr><td><a href="/x86/aaa">AAA again</a></td></tr>
  <tr><td><a href="/x86/vmcall">VMCALL</a></td></tr>
</table>
</body></html>
"""

DETAIL_HTML = """
<html><body>
<h1>ADD - Add</h1>
<table>
  <tr><th>Opcode</th><th>Instruction</th><th></th><th>Description</th></tr>
  <tr><td>04 ib</td><td>ADD AL, imm8</td><td>I</td><td>Add imm8 to AL.</td></tr>
  <tr><td></td><td> </td><td></td><td></td></tr>
</table>
<h2 id="instruction-operand-encoding">Instruction Operand Encoding</h2>
<table>
  <tr><th>Op/En</th><th>Operand 1</th></tr>
  <tr><td>I</td><td>AL/AX/EAX/RAX</td></tr>
</table>
<h2 id="description">Description</h2>
<p>Adds the destination operand and the source operand.</p>
<table><tr><th>Note</th></tr><tr><td>not text</td></tr></table>
<h3>Subsection</h3>
<p>Still part of the description.</p>
<h2 id="operation">Operation</h2>
<pre>DEST := DEST + SRC;</pre>
<h2 id="flags-affected">Flags Affected</h2>
<p>The OF, SF, ZF, AF, CF, and PF flags are set according to the result.</p>
<h2 class="exceptions">Protected Mode Exceptions</h2>
<table>
  <tr><th>Exception</th><th>Condition</th></tr>
  <tr><td>#GP(0)</td><td>If the destination is located in a non-writable segment.</td></tr>
</table>
<p>#UD If the LOCK prefix is used but the destination is not a memory operand.</p>
<h2 class="exceptions">SIMD Floating-Point Exceptions</h2>
<p>None.</p>
</body></html>
"""


@pytest.fixture
def sample_global_config(tmp_path: Path) -> GlobalConfig:
    return GlobalConfig(
        outputs_dir=tmp_path / "outputs",
        profiles_dir=tmp_path / "profiles",
        request_timeout=5,
        max_workers=4,
        enable_progress_bar=False,
    )


@pytest.fixture
def sample_profile() -> Callable[..., SiteProfile]:
    def _builder(**overrides: Any) -> SiteProfile:
        base: dict[str, Any] = {
            "profile_name": "example",
            "index_url": INDEX_URL,
            "base_url": "https://docs.example.com",
            "site_prefix": "/x86/",
            "output_file": "example.json",
            "index": {"section_names": ["Core Instructions"], "section_keyword": "instructions"},
        }
        base.update(overrides)
        return SiteProfile.model_validate(base)

    return _builder


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterable[ConfigRepository]:
    monkeypatch.setenv("REFSCRAPE_HOME", str(tmp_path))
    locator = ConfigLocator(project_root=tmp_path)
    repository = ConfigRepository(locator)
    yield repository


@pytest.fixture
def site_transport() -> Callable[..., httpx.MockTransport]:
    """Serve ``pages`` keyed by URL; unknown URLs answer 404."""

    def _builder(pages: dict[str, str], hits: list[str] | None = None) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            url = str(request.url)
            if hits is not None:
                hits.append(url)
            if url in pages:
                return httpx.Response(200, text=pages[url], headers={"Content-Type": "text/html"})
            return httpx.Response(404, text="not here")

        return httpx.MockTransport(handler)

    return _builder


@pytest.fixture
def index_html() -> str:
    return INDEX_HTML


@pytest.fixture
def detail_html() -> str:
    return DETAIL_HTML
