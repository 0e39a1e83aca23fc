"""Public share links: a redirect for one photo, a gallery page for several."""

from __future__ import annotations

import html
import re
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from photobooth.domain.errors import NotFound

if TYPE_CHECKING:
    from photobooth.containers import AppContainer
    from photobooth.services.gallery import GalleryPhoto

router = APIRouter(tags=["gallery"])

_SHORT_ID = re.compile(r"^[0-9a-z]{1,16}$")


@router.get("/{short_id}", response_class=HTMLResponse)
async def share_link(short_id: str, request: Request) -> Response:
    """Resolve a share link printed on a QR code."""
    if not _SHORT_ID.match(short_id):
        return HTMLResponse(_NOT_FOUND_HTML, status_code=404)
    container: AppContainer = request.app.state.container
    try:
        photos = await container.gallery_service.resolve(short_id)
    except NotFound:
        return HTMLResponse(_NOT_FOUND_HTML, status_code=404)
    if len(photos) == 1:
        return RedirectResponse(photos[0].url, status_code=302)
    return HTMLResponse(render_gallery(short_id, photos))


def render_gallery(short_id: str, photos: list[GalleryPhoto]) -> str:
    """Render the gallery page for a multi-photo session."""
    items = "\n".join(
        _GALLERY_ITEM_HTML.format(
            url=html.escape(photo.url, quote=True),
            download_url=html.escape(photo.download_url, quote=True),
            index=index,
        )
        for index, photo in enumerate(photos, start=1)
    )
    return _GALLERY_HTML.format(
        short_id=html.escape(short_id), count=len(photos), items=items
    )


_GALLERY_ITEM_HTML = """      <figure>
        <img src="{url}" alt="Photo {index}" loading="lazy" />
        <a href="{download_url}">Download</a>
      </figure>"""

_GALLERY_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Photobooth {short_id}</title>
    <style>
      body {{ font-family: ui-sans-serif, system-ui, sans-serif; margin: 1rem; }}
      .grid {{ display: grid; gap: 1rem;
        grid-template-columns: repeat(auto-fill, minmax(240px, 1fr)); }}
      figure {{ margin: 0; }}
      img {{ width: 100%; border-radius: 8px; }}
      a {{ display: inline-block; margin-top: 0.4rem; }}
    </style>
  </head>
  <body>
    <h1>Your photos ({count})</h1>
    <div class="grid">
{items}
    </div>
  </body>
</html>
"""

_NOT_FOUND_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>Photos not found</title>
  </head>
  <body>
    <h1>Photos not found</h1>
    <p>This link has expired or never existed.</p>
  </body>
</html>
"""
