"""Test suite for message rendering."""

from kayd_assistant.services.rendering import render, to_plain_text


def test_escapes_html_metacharacters():
    """Test all five metacharacters are escaped."""
    markup = render("""<b onclick="x">Tom & Jerry's</b>""")
    assert "<b" not in markup
    assert "&lt;b onclick=&quot;x&quot;&gt;" in markup
    assert "Tom &amp; Jerry&#x27;s" in markup


def test_bold_and_line_breaks():
    """Test bold spans and newlines are the only markup produced."""
    assert render("**Pricing Guide**\nfrom $25") == "<strong>Pricing Guide</strong><br>from $25"
    assert render("**a** and **b**") == "<strong>a</strong> and <strong>b</strong>"


def test_bold_does_not_span_lines():
    """Test an unclosed marker stays literal."""
    assert render("**open\nclose**") == "**open<br>close**"


def test_escaping_happens_before_bold():
    """Test markup inside bold spans is still escaped."""
    assert render("**<i>x</i>**") == "<strong>&lt;i&gt;x&lt;/i&gt;</strong>"


def test_plain_text_for_copy():
    """Test copy text drops bold markers and bullet glyphs."""
    assert to_plain_text("**Tools**\n• Drill\n# Saws") == "Tools\n- Drill\n- Saws"
