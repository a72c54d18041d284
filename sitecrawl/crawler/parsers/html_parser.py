"""HTML page extraction: structure with BeautifulSoup, main text via Trafilatura + Readability."""

from __future__ import annotations

from dataclasses import dataclass
import re

from bs4 import BeautifulSoup, Tag
from readability import Document as ReadabilityDocument
import trafilatura

from ..types import ContentType, JSONDict, LinkRecord, ParseResult
from ..url import host_from_url, is_same_domain, normalize_url, resolve_url, should_skip_url


MAIN_CONTENT_SELECTOR = "main, article, .content, #content, .post-content"
BOILERPLATE_TAGS = ("nav", "header", "footer", "aside")
NON_TEXT_TAGS = ("script", "style", "noscript", "template")


@dataclass(slots=True)
class HTMLParserConfig:
    """Config for HTML extraction."""

    parser_name: str = "html_parser_bs4_trafilatura_readability"
    include_nofollow_links: bool = True
    use_trafilatura: bool = True
    use_readability: bool = True
    merge_separator: str = "\n\n"
    max_paragraphs: int = 10
    min_paragraph_chars: int = 10
    max_lists: int = 5
    max_images: int = 20


class HTMLParser:
    """Turn one HTML document into a structured page record and its outbound links."""

    def __init__(self, config: HTMLParserConfig | None = None) -> None:
        self.config = config or HTMLParserConfig()

    def parse(
        self,
        *,
        url: str,
        html: str | bytes,
        domain: str,
        final_url: str | None = None,
    ) -> ParseResult:
        base_url = final_url or url
        html_text = self._coerce_html_text(html)

        soup = BeautifulSoup(html_text, "lxml")

        title = self._extract_title(soup)
        meta = self._extract_meta(soup)
        headings = self._extract_headings(soup)
        images = self._extract_images(soup, base_url)
        links = self._extract_links(soup, base_url, domain)
        content_type = self._classify(soup)

        for element in soup.find_all(NON_TEXT_TAGS):
            element.decompose()
        word_count = self._word_count(self._body_text(soup))

        paragraphs = self._extract_paragraphs(soup)
        lists = self._extract_lists(soup)

        text = self._extract_main_text(html_text)
        if not text:
            for element in soup.find_all(BOILERPLATE_TAGS):
                element.decompose()
            text = self._fallback_text(soup)

        return ParseResult(
            url=url,
            final_url=final_url,
            title=title,
            meta=meta,
            headings=headings,
            content={
                "text": text,
                "paragraphs": paragraphs,
                "lists": lists,
            },
            images=images,
            links=links,
            content_type=content_type,
            word_count=word_count,
            parser=self.config.parser_name,
        )

    @staticmethod
    def _coerce_html_text(html: str | bytes) -> str:
        if isinstance(html, bytes):
            return html.decode("utf-8", errors="replace")
        return html

    @staticmethod
    def _extract_title(soup: BeautifulSoup) -> str | None:
        if soup.title and soup.title.get_text(strip=True):
            return soup.title.get_text(" ", strip=True)
        heading = soup.find("h1")
        if heading:
            text = heading.get_text(" ", strip=True)
            if text:
                return text
        return None

    @staticmethod
    def _extract_meta(soup: BeautifulSoup) -> dict[str, str]:
        meta: dict[str, str] = {}
        for element in soup.find_all("meta"):
            name = element.get("name") or element.get("property") or element.get("http-equiv")
            content = element.get("content")
            if name and content:
                meta[str(name)] = str(content)

        canonical = soup.find("link", rel="canonical")
        if canonical and canonical.get("href"):
            meta["canonical"] = str(canonical["href"])
        return meta

    @staticmethod
    def _extract_headings(soup: BeautifulSoup) -> list[JSONDict]:
        headings: list[JSONDict] = []
        for element in soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"]):
            text = element.get_text(" ", strip=True)
            if not text:
                continue
            headings.append(
                {
                    "level": int(element.name[1]),
                    "text": text,
                    "id": element.get("id"),
                }
            )
        return headings

    def _extract_images(self, soup: BeautifulSoup, base_url: str) -> list[JSONDict]:
        images: list[JSONDict] = []
        for element in soup.find_all("img"):
            src = element.get("src")
            if not src:
                continue
            absolute = resolve_url(base_url, src)
            if not absolute:
                continue
            images.append(
                {
                    "src": absolute,
                    "alt": element.get("alt") or "",
                    "title": element.get("title") or "",
                }
            )
            if len(images) >= self.config.max_images:
                break
        return images

    def _extract_links(self, soup: BeautifulSoup, base_url: str, domain: str) -> list[LinkRecord]:
        """Collect normalized page links in document order, duplicates removed."""

        links: list[LinkRecord] = []
        seen: set[str] = set()

        for element in soup.find_all("a", href=True):
            rel_values = {value.lower() for value in (element.get("rel") or [])}
            if not self.config.include_nofollow_links and "nofollow" in rel_values:
                continue

            absolute = resolve_url(base_url, element.get("href"))
            if not absolute or should_skip_url(absolute):
                continue

            normalized = normalize_url(absolute)
            if not normalized or normalized in seen:
                continue
            seen.add(normalized)

            links.append(
                LinkRecord(
                    url=normalized,
                    text=element.get_text(" ", strip=True),
                    title=element.get("title") or "",
                    is_internal=is_same_domain(normalized, domain),
                    domain=host_from_url(normalized),
                )
            )

        return links

    @staticmethod
    def _classify(soup: BeautifulSoup) -> ContentType:
        if soup.select("article, .post, .blog-post"):
            return ContentType.ARTICLE
        if len(soup.select("nav, .navigation, .menu")) > 3:
            return ContentType.NAVIGATION
        if len(soup.find_all("form")) > 2:
            return ContentType.FORM_PAGE
        if len(soup.select(".product, .item, .listing")) > 5:
            return ContentType.LISTING
        return ContentType.PAGE

    @staticmethod
    def _body_text(soup: BeautifulSoup) -> str:
        root: Tag | BeautifulSoup = soup.body or soup
        return root.get_text(" ", strip=True)

    def _extract_paragraphs(self, soup: BeautifulSoup) -> list[str]:
        paragraphs: list[str] = []
        for element in soup.find_all("p"):
            text = self._collapse(element.get_text(" ", strip=True))
            if len(text) > self.config.min_paragraph_chars:
                paragraphs.append(text)
            if len(paragraphs) >= self.config.max_paragraphs:
                break
        return paragraphs

    def _extract_lists(self, soup: BeautifulSoup) -> list[JSONDict]:
        lists: list[JSONDict] = []
        for element in soup.find_all(["ul", "ol"]):
            items = [
                text
                for item in element.find_all("li")
                if (text := item.get_text(" ", strip=True))
            ]
            if items:
                lists.append({"type": element.name, "items": items})
            if len(lists) >= self.config.max_lists:
                break
        return lists

    def _extract_main_text(self, html_text: str) -> str:
        trafilatura_text = self._extract_with_trafilatura(html_text)
        readability_text = self._extract_with_readability(html_text)
        return self._merge_texts(trafilatura_text, readability_text)

    def _extract_with_trafilatura(self, html_text: str) -> str:
        if not self.config.use_trafilatura:
            return ""

        try:
            extracted = trafilatura.extract(
                html_text,
                output_format="txt",
                include_comments=False,
                include_tables=True,
                include_images=False,
                deduplicate=True,
                favor_precision=True,
            )
        except Exception:
            return ""
        return (extracted or "").strip()

    def _extract_with_readability(self, html_text: str) -> str:
        if not self.config.use_readability:
            return ""

        try:
            summary_html = ReadabilityDocument(html_text).summary()
        except Exception:
            return ""
        if isinstance(summary_html, bytes):
            summary_html = summary_html.decode("utf-8", errors="replace")
        if not summary_html:
            return ""
        return BeautifulSoup(summary_html, "lxml").get_text("\n", strip=True).strip()

    def _merge_texts(self, trafilatura_text: str, readability_text: str) -> str:
        ordered_paragraphs: list[str] = []
        seen: set[str] = set()

        for text in (trafilatura_text, readability_text):
            for paragraph in self._split_paragraphs(text):
                key = self._dedupe_key(paragraph)
                if not key or key in seen:
                    continue
                seen.add(key)
                ordered_paragraphs.append(paragraph)

        return self.config.merge_separator.join(ordered_paragraphs).strip()

    def _fallback_text(self, soup: BeautifulSoup) -> str:
        main = soup.select_one(MAIN_CONTENT_SELECTOR)
        if main is not None:
            return self._collapse(main.get_text(" ", strip=True))
        return self._collapse(self._body_text(soup))

    @staticmethod
    def _split_paragraphs(text: str) -> list[str]:
        normalized = text.replace("\r\n", "\n").replace("\r", "\n").strip()
        if not normalized:
            return []

        chunks = re.split(r"\n\s*\n+", normalized)
        paragraphs: list[str] = []
        for chunk in chunks:
            compact = re.sub(r"[ \t]+", " ", chunk).strip()
            if compact:
                paragraphs.append(compact)
        return paragraphs

    @staticmethod
    def _dedupe_key(text: str) -> str:
        return re.sub(r"[^a-z0-9]+", " ", text.lower()).strip()

    @staticmethod
    def _collapse(text: str) -> str:
        return re.sub(r"\s+", " ", text).strip()

    @staticmethod
    def _word_count(text: str) -> int:
        return len(text.split())


__all__ = [
    "HTMLParser",
    "HTMLParserConfig",
]
