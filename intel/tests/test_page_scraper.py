# intel/tests/test_page_scraper.py
import fitz
import httpx
import pytest

from intel.models import CompanyInfo
from intel.scraper import page_scraper
from intel.scraper.company_info import (
    COMPANY_PATHS,
    detect_tech_stack,
    is_sitemap_candidate,
    parent_hostname,
    parse_company_info,
)
from intel.scraper.ocr import OcrFallback
from intel.scraper.page_scraper import PDF_ERROR_TEXT, PageScraper, is_pdf_response

HOME_HTML = """
<html>
<head>
  <title>サンプル株式会社 | 公式サイト</title>
  <meta name="description" content="警備サービスのサンプル">
  <link rel="stylesheet" href="/wp-content/themes/sample/style.css">
  <script>var secret = "スクリプト本文";</script>
</head>
<body>
  <nav><a href="/menu">メニュー</a></nav>
  <main>
    <p>当社は施設警備を提供しています。</p>
    <a href="/recruit/">採用情報</a>
    <a href="https://example.co.jp/recruit/">Recruit</a>
    <a href="/careers"><img src="/b.png" alt="Career"></a>
  </main>
  <footer>Copyright</footer>
</body>
</html>
"""

PROFILE_HTML = """
<html><body>
<table>
  <tr><th>資本金</th><td>1,000万円</td></tr>
  <tr><th>従業員数</th><td>120名</td></tr>
</table>
</body></html>
"""


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _pdf_bytes(lines=20):
    doc = fitz.open()
    page = doc.new_page()
    for i in range(lines):
        page.insert_text((72, 72 + i * 20), f"Annual report line {i}")
    data = doc.tobytes()
    doc.close()
    return data


def test_pdf_detection_any_single_signal():
    empty = httpx.Headers({})
    assert is_pdf_response("https://x/doc", httpx.Headers({"content-type": "application/pdf"}), b"")
    assert is_pdf_response("https://x/doc.PDF", empty, b"")
    assert is_pdf_response("https://x/dl", httpx.Headers({"content-disposition": 'attachment; filename="a.pdf"'}), b"")
    assert is_pdf_response("https://x/dl", empty, b"%PDF-1.7 ...")
    assert not is_pdf_response("https://x/index.html", httpx.Headers({"content-type": "text/html"}), b"<html>")


def test_parent_hostname():
    assert parent_hostname("example.co.jp") is None
    assert parent_hostname("example.com") is None
    assert parent_hostname("www.example.co.jp") == "example.co.jp"
    assert parent_hostname("shop.example.com") == "example.com"


def test_sitemap_candidate_matches_path_only():
    assert is_sitemap_candidate("https://example.co.jp/company/outline/")
    assert is_sitemap_candidate("https://example.co.jp/saiyo/")
    assert not is_sitemap_candidate("https://company.example.co.jp/news/1")


def test_parse_company_info_regexes():
    text = "資本金：1,000万円 従業員数 120名 設立 2001年4月 3月決算"
    info = parse_company_info(text)
    assert info.capital == "1,000万円"
    assert info.employees == "120名"
    assert info.founded == "2001年4月"
    assert info.fiscal_year_end == "3月"
    assert info.revenue == ""
    assert info.has_core()


def test_parse_company_info_keeps_existing_values():
    existing = CompanyInfo(capital="5億円")
    info = parse_company_info("資本金 1,000万円 売上高：12億円", existing)
    assert info.capital == "5億円"
    assert info.revenue == "12億円"
    # a entrada não é alterada
    assert existing.revenue == ""


def test_detect_tech_stack():
    stack = detect_tech_stack('<script src="https://js.hs-scripts.com/hubspot.js"></script> wp-content gtag(')
    assert stack.cms == ["WordPress"]
    assert stack.crm == ["HubSpot"]
    assert stack.analytics == ["GA4"]
    assert stack.ec == []


@pytest.mark.asyncio
async def test_html_page_extraction():
    def handler(request):
        return httpx.Response(200, text=HOME_HTML if request.url.path == "/" else PROFILE_HTML,
                              headers={"content-type": "text/html; charset=utf-8"})

    async with _client(handler) as http:
        page = await PageScraper(http).fetch_page_content("https://example.co.jp/")

    assert page.title == "サンプル株式会社 | 公式サイト"
    assert page.description == "警備サービスのサンプル"
    assert "施設警備" in page.body_text
    assert "スクリプト本文" not in page.body_text
    assert "メニュー" not in page.body_text
    assert "Copyright" not in page.body_text
    assert page.recruit_links == ["https://example.co.jp/recruit/", "https://example.co.jp/careers"]
    assert page.tech_stack.cms == ["WordPress"]


@pytest.mark.asyncio
async def test_crawl_stops_at_first_page_with_core_fact():
    requested = []

    def handler(request):
        requested.append(request.url.path)
        if request.url.path == "/":
            return httpx.Response(200, text=HOME_HTML, headers={"content-type": "text/html"})
        if request.url.path == "/about":
            return httpx.Response(200, text=PROFILE_HTML, headers={"content-type": "text/html"})
        return httpx.Response(404)

    async with _client(handler) as http:
        page = await PageScraper(http).fetch_page_content("https://example.co.jp")

    assert page.company_info.capital == "1,000万円"
    assert page.company_info.employees == "120名"
    assert requested == ["/", "/sitemap.xml", "/sitemap_index.xml", "/company", "/about"]


@pytest.mark.asyncio
async def test_crawl_uses_sitemap_before_fixed_paths():
    requested = []
    sitemap = """<?xml version="1.0"?><urlset>
      <url><loc>https://example.co.jp/news/1</loc></url>
      <url><loc>https://example.co.jp/gaiyou/outline</loc></url>
    </urlset>"""

    def handler(request):
        requested.append(request.url.path)
        if request.url.path == "/sitemap.xml":
            return httpx.Response(200, text=sitemap, headers={"content-type": "application/xml"})
        if request.url.path == "/gaiyou/outline":
            return httpx.Response(200, text=PROFILE_HTML, headers={"content-type": "text/html"})
        return httpx.Response(404)

    async with _client(handler) as http:
        info = await PageScraper(http).crawl_company_info("https://example.co.jp/")

    assert info.capital == "1,000万円"
    assert requested == ["/sitemap.xml", "/gaiyou/outline"]


@pytest.mark.asyncio
async def test_crawl_tries_parent_domain_for_subdomains():
    requested = []

    def handler(request):
        requested.append((request.url.host, request.url.path))
        if request.url.host == "example.co.jp" and request.url.path == "/corporate":
            return httpx.Response(200, text=PROFILE_HTML, headers={"content-type": "text/html"})
        return httpx.Response(404)

    async with _client(handler) as http:
        info = await PageScraper(http).crawl_company_info("https://shop.example.co.jp/")

    assert info.employees == "120名"
    # todos os caminhos do subdomínio antes da raiz
    sub_paths = [p for host, p in requested if host == "shop.example.co.jp"]
    assert sub_paths[2:] == COMPANY_PATHS
    assert requested[-1] == ("example.co.jp", "/corporate")


@pytest.mark.asyncio
async def test_pdf_text_extraction():
    data = _pdf_bytes()

    def handler(request):
        return httpx.Response(200, content=data, headers={"content-type": "application/pdf"})

    async with _client(handler) as http:
        page = await PageScraper(http).fetch_page_content("https://example.co.jp/ir/report.pdf")

    assert page.title == "PDF Document: report.pdf"
    assert "Annual report line 0" in page.body_text
    assert len(page.body_text) >= 200


@pytest.mark.asyncio
async def test_pdf_parse_error_sets_error_text(monkeypatch):
    def broken(data):
        raise RuntimeError("cannot open broken document")

    monkeypatch.setattr(page_scraper, "extract_pdf_text", broken)

    def handler(request):
        return httpx.Response(200, content=b"%PDF-garbage")

    async with _client(handler) as http:
        page = await PageScraper(http).fetch_page_content("https://example.co.jp/dl?id=1")

    assert page.body_text == PDF_ERROR_TEXT
    assert page.title == "PDF Document: dl"


@pytest.mark.asyncio
async def test_short_pdf_falls_back_to_ocr(monkeypatch):
    monkeypatch.setattr(page_scraper, "extract_pdf_text", lambda data: "短い")

    class _Ocr:
        available = True
        hints = []

        async def transcribe_pdf(self, data, hint=""):
            self.hints.append(hint)
            return "会社概要 資本金 1,000万円 " * 20

    ocr = _Ocr()

    def handler(request):
        return httpx.Response(200, content=b"%PDF-1.4 scanned")

    async with _client(handler) as http:
        page = await PageScraper(http, ocr=ocr).fetch_page_content("https://example.co.jp/a.pdf")

    assert page.body_text.startswith("会社概要")
    assert ocr.hints == ["PDF URL: https://example.co.jp/a.pdf"]


@pytest.mark.asyncio
async def test_scrape_http_error_returns_empty_page():
    def handler(request):
        return httpx.Response(500)

    async with _client(handler) as http:
        page = await PageScraper(http).fetch_page_content("https://example.co.jp/")

    assert page.title == "" and page.body_text == ""


@pytest.mark.asyncio
async def test_ocr_fallback_normalizes_and_swallows_errors(fake_llm):
    ocr = OcrFallback(fake_llm(["  会社概要\n\n資本金  1億円 ", RuntimeError("quota")]))
    assert ocr.available
    assert await ocr.transcribe([b"png"], hint="PDF URL: x") == "会社概要 資本金 1億円"
    assert await ocr.transcribe([b"png"]) == ""
    assert not OcrFallback(None).available


@pytest.mark.asyncio
async def test_malformed_url_returns_empty_page():
    requested = []

    def handler(request):
        requested.append(request.url)
        return httpx.Response(200, text=HOME_HTML)

    async with _client(handler) as http:
        page = await PageScraper(http).fetch_page_content("https://example.com:abc/")

    assert page.title == "" and page.body_text == ""
    assert requested == []


@pytest.mark.asyncio
async def test_malformed_sitemap_loc_is_skipped():
    requested = []
    sitemap = """<?xml version="1.0"?><urlset>
      <url><loc>https://example.co.jp:abc/company</loc></url>
    </urlset>"""

    def handler(request):
        requested.append(request.url.path)
        if request.url.path == "/":
            return httpx.Response(200, text=HOME_HTML, headers={"content-type": "text/html"})
        if request.url.path == "/sitemap.xml":
            return httpx.Response(200, text=sitemap, headers={"content-type": "application/xml"})
        if request.url.path == "/company":
            return httpx.Response(200, text=PROFILE_HTML, headers={"content-type": "text/html"})
        return httpx.Response(404)

    async with _client(handler) as http:
        page = await PageScraper(http).fetch_page_content("https://example.co.jp/")

    assert page.title == "サンプル株式会社 | 公式サイト"
    assert "施設警備" in page.body_text
    assert page.company_info.capital == "1,000万円"
    assert requested == ["/", "/sitemap.xml", "/sitemap_index.xml", "/company"]
