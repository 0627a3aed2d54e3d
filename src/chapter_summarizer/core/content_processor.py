"""Convert EPUB XHTML documents into plain text."""

import warnings

from bs4 import BeautifulSoup, XMLParsedAsHTMLWarning

# Suppress XML parsing warnings - EPUB files often use XHTML
warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)

BLOCK_TAGS = ["p", "h1", "h2", "h3", "h4", "h5", "h6", "li", "blockquote", "pre"]


class ContentProcessor:
    """Process HTML content into summarizer-friendly plain text."""

    def to_text(self, html_content: bytes | str) -> str:
        """Extract plain text with paragraph preservation."""
        soup = BeautifulSoup(html_content, "lxml")

        # Remove scripts, styles, and navigation elements
        for tag in soup(["script", "style", "nav", "header", "footer", "aside"]):
            tag.decompose()

        paragraphs = []
        for block in soup.find_all(BLOCK_TAGS):
            # Nested blocks are reached through their parent
            if block.find_parent(BLOCK_TAGS) is not None:
                continue
            text = block.get_text(" ", strip=True)
            if text:
                paragraphs.append(text)

        if paragraphs:
            return "\n\n".join(paragraphs)

        # Documents built from bare divs/spans
        body = soup.body or soup
        return body.get_text("\n", strip=True)

    def get_title(self, html_content: bytes | str) -> str | None:
        """Try to extract a heading or title from HTML content."""
        soup = BeautifulSoup(html_content, "lxml")
        for tag in ["h1", "h2", "title"]:
            element = soup.find(tag)
            if element:
                text = element.get_text(strip=True)
                if text:
                    return text
        return None
