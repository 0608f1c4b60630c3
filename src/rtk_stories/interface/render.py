"""HTML rendering for the card page."""

from html import escape
from urllib.parse import quote

from rtk_stories.domain.constants import SELECT_CUSTOM, SELECT_HEISIG
from rtk_stories.domain.models import CardView, StoryBundle


def _nav_link(element_id: str, position: int | None, kanji: str) -> str:
    arrow = "&lt;" if element_id == "prev" else "&gt;"
    if position is None:
        return f'<span id="{element_id}" class="disabled">{arrow}</span>'
    label = f"{arrow}{escape(kanji)}" if element_id == "prev" else f"{escape(kanji)}{arrow}"
    return f'<a id="{element_id}" href="/card/{position}">{label}</a>'


def _heisig_html(bundle: StoryBundle) -> str:
    # Story bodies come from the reference site as HTML and are inserted as-is.
    parts = []
    if bundle.heisig:
        parts.append(
            "<h2>Heisig Story</h2>\n<p>\n"
            f'  <label><input type="radio" name="story" value="{SELECT_HEISIG}"/>'
            f"{bundle.heisig}</label>\n</p>"
        )
    if bundle.primitive or bundle.comment:
        parts.append("<h2>Heisig Notes</h2>")
    if bundle.primitive:
        parts.append(f"<p>{bundle.primitive}</p>")
    if bundle.comment:
        parts.append(f"<p>{bundle.comment}</p>")
    return "\n".join(parts)


def _koohii_html(bundle: StoryBundle) -> str:
    return "".join(
        f'<p><label><input type="radio" name="story" value="{i}"/>'
        f"<u><b>{escape(s.author)} ({s.score}):</b></u> {s.story}</label></p>"
        for i, s in enumerate(bundle.koohii)
    )


def render_card_page(view: CardView, site_base_url: str) -> str:
    card = view.card
    kanji = escape(card.kanji)
    keyword = escape(card.keyword)

    alternative = ""
    if card.alternative_kanji:
        alternative = (
            f'<span class="alternative kanji">{escape(card.alternative_kanji)}</span><br/>'
        )

    prev_link = _nav_link("prev", view.prev_position, view.prev_card.kanji if view.prev_card else "")
    next_link = _nav_link("next", view.next_position, view.next_card.kanji if view.next_card else "")

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>{kanji} - {keyword}</title>
  <link rel="stylesheet" href="/static/style.css">
</head>
<body>
  <main>
    <div id="info">
      <span id="keyword">
        <a target="_blank" href="{escape(site_base_url)}/{quote(card.kanji, safe='')}/">{keyword}</a>
      </span><br/>
      <span class="kanji">{kanji}</span><br/>
      {alternative}
      {prev_link}
      {next_link}
      <span id="position">{view.position} / {view.total}</span>
    </div>
    <div id="stories">
      <form method="post">
        <input type="hidden" id="verify" name="kanji" value="{kanji}" />
        {_heisig_html(view.bundle)}
        <h2>Koohii Stories</h2>
        {_koohii_html(view.bundle)}
        <h2>Your Story</h2>
        <label><input type="radio" name="story" value="{SELECT_CUSTOM}" checked />Use custom story</label><br/>
        <textarea rows=5 name="content">{escape(card.story)}</textarea>
        <br/><br/>
        <input id="save" type="submit" value="Save Selected Story"/>
      </form>
    </div>
  </main>
</body>
</html>
"""
