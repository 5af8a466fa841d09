"""Canned listing pages and fakes shared by the scanner tests."""

NIKKEI_BASE = "https://www.nikkei.com"


def nikkei_row(time, title, code="1234", name="テスト社", category="PR", slug=None):
    slug = slug or f"{code}{time.replace(':', '')}"
    detail = f"{NIKKEI_BASE}/nkd/disclosure/tdnr/{slug}/"
    return (
        "<tr>"
        f"<td>{time}</td>"
        f'<td><a href="/nkd/company/?scode={code}">{name}</a></td>'
        f"<td>{category}</td>"
        f'<td><a href="{NIKKEI_BASE}/nkd/disclosure/viewer/?t={detail}">{title}</a></td>'
        "</tr>"
    )


def nikkei_page(rows, next_page=False):
    pager = ""
    if next_page:
        pager = (
            '<div class="searchResolutTop"><ul>'
            '<li class="nextPageLink"><a href="?hm=2">次へ</a></li>'
            "</ul></div>"
        )
    return (
        "<html><body>"
        f"{pager}"
        '<table id="IR1600"><thead><tr><th>時刻</th><th>会社名</th><th>種別</th><th>表題</th></tr></thead>'
        f"<tbody>{''.join(rows)}</tbody></table>"
        "</body></html>"
    )


def detail_page(pdf_path):
    return f'<script>var conf = {{"pdfLocation": "{pdf_path}"}};</script>'


class FakeFetcher:
    """Serves canned listing pages and detail pages."""

    def __init__(self, pages=None, details=None):
        self.pages = pages or {}
        self.details = details or {}
        self.visited = []
        self.fetched = []

    def fetch_page(self, adapter, page, today):
        self.visited.append(page)
        value = self.pages.get(page)
        if isinstance(value, Exception):
            raise value
        return value

    def fetch(self, url):
        self.fetched.append(url)
        value = self.details.get(url)
        if callable(value):
            return value()
        return value
