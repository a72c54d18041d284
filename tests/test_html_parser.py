from sitecrawl.crawler.parsers import HTMLParser, HTMLParserConfig
from sitecrawl.crawler.types import ContentType


PAGE = """
<html>
<head>
  <title>Field Guide</title>
  <meta name="description" content="All about birds">
  <meta property="og:type" content="article">
  <link rel="canonical" href="https://example.com/guide">
  <style>.hidden { display: none }</style>
  <script>var tracking = "do not count me";</script>
</head>
<body>
  <nav><a href="/">Home</a> <a href="/about/">About</a></nav>
  <main>
    <h1 id="top">Field Guide</h1>
    <h2>Herons</h2>
    <p>Herons wade slowly through shallow water hunting fish.</p>
    <p>Short.</p>
    <ul><li>Grey heron</li><li>Great egret</li></ul>
    <img src="/img/heron.jpg" alt="A heron">
    <a href="herons#diet" title="Heron page">Herons in depth</a>
    <a href="https://birds.org/list" rel="nofollow">External list</a>
    <a href="/files/checklist.pdf">Checklist</a>
    <a href="mailto:editor@example.com">Mail</a>
    <a href="/about">About again</a>
  </main>
  <footer>Copyright footer text</footer>
</body>
</html>
"""


def parse(html=PAGE, config=None, url="https://example.com/guide/"):
    return HTMLParser(config).parse(url=url, html=html, domain="example.com")


class TestStructure:
    def test_title_meta_headings(self):
        result = parse()

        assert result.title == "Field Guide"
        assert result.meta["description"] == "All about birds"
        assert result.meta["og:type"] == "article"
        assert result.meta["canonical"] == "https://example.com/guide"
        assert result.headings[0] == {"level": 1, "text": "Field Guide", "id": "top"}
        assert result.headings[1]["level"] == 2

    def test_title_falls_back_to_h1(self):
        result = parse("<html><body><h1>Only Heading</h1></body></html>")
        assert result.title == "Only Heading"

    def test_title_missing(self):
        result = parse("<html><body><p>No headings at all here.</p></body></html>")
        assert result.title is None

    def test_images_are_absolute(self):
        result = parse()
        assert result.images == [
            {"src": "https://example.com/img/heron.jpg", "alt": "A heron", "title": ""}
        ]

    def test_paragraphs_and_lists(self):
        content = parse().content

        assert content["paragraphs"] == ["Herons wade slowly through shallow water hunting fish."]
        assert content["lists"] == [{"type": "ul", "items": ["Grey heron", "Great egret"]}]

    def test_word_count_ignores_scripts(self):
        result = parse("<html><body><script>one two three</script><p>four five</p></body></html>")
        assert result.word_count == 2


class TestLinks:
    def test_links_normalized_and_deduplicated(self):
        urls = [link.url for link in parse().links]

        assert urls == [
            "https://example.com/",
            "https://example.com/about",
            "https://example.com/guide/herons",
            "https://birds.org/list",
        ]

    def test_internal_flag_and_domain(self):
        links = {link.url: link for link in parse().links}

        heron = links["https://example.com/guide/herons"]
        assert heron.is_internal
        assert heron.title == "Heron page"
        assert heron.text == "Herons in depth"

        external = links["https://birds.org/list"]
        assert not external.is_internal
        assert external.domain == "birds.org"

    def test_nofollow_can_be_excluded(self):
        result = parse(config=HTMLParserConfig(include_nofollow_links=False))
        assert "https://birds.org/list" not in [link.url for link in result.links]


class TestContent:
    def test_fallback_text_drops_boilerplate(self):
        config = HTMLParserConfig(use_trafilatura=False, use_readability=False)

        text = parse(config=config).content["text"]

        assert "Herons wade slowly" in text
        assert "Copyright footer text" not in text
        assert "do not count me" not in text

    def test_fallback_uses_body_without_main(self):
        config = HTMLParserConfig(use_trafilatura=False, use_readability=False)
        html = "<html><body><header>Site header</header><div>Plain body text</div></body></html>"

        text = parse(html, config=config).content["text"]

        assert text == "Plain body text"

    def test_extracted_text_contains_main_paragraph(self):
        body = " ".join(["Herons wade slowly through shallow water hunting fish."] * 8)
        html = f"<html><body><article><h1>Herons</h1><p>{body}</p></article></body></html>"

        assert "Herons wade slowly" in parse(html).content["text"]


class TestClassification:
    def test_article(self):
        assert parse("<html><body><article>x</article></body></html>").content_type == ContentType.ARTICLE

    def test_navigation_counted_before_stripping(self):
        navs = "".join("<nav>menu</nav>" for _ in range(4))
        assert parse(f"<html><body>{navs}</body></html>").content_type == ContentType.NAVIGATION

    def test_form_page(self):
        forms = "".join("<form></form>" for _ in range(3))
        assert parse(f"<html><body>{forms}</body></html>").content_type == ContentType.FORM_PAGE

    def test_listing(self):
        items = "".join('<div class="product">p</div>' for _ in range(6))
        assert parse(f"<html><body>{items}</body></html>").content_type == ContentType.LISTING

    def test_plain_page(self):
        assert parse("<html><body><p>hello</p></body></html>").content_type == ContentType.PAGE
