"""
Style catalog endpoints.
"""

from fastapi import APIRouter

from aura.domain.catalog import Style, get_all_styles

from ..schemas import StyleResponse

router = APIRouter()


def style_to_response(style: Style) -> StyleResponse:
    return StyleResponse(
        id=style.id,
        name=style.name,
        mix_url=style.mix_url,
        duration=style.duration,
        is_selectable=style.is_selectable,
    )


@router.get("/styles", response_model=list[StyleResponse])
def list_styles() -> list[StyleResponse]:
    """List every style. Styles without a mix are listed but not selectable."""
    return [style_to_response(s) for s in get_all_styles()]
