from __future__ import annotations

from PIL import Image

from pokescan.state.types import RGB


class PillowPixelSampler:
    """Reads scanlines straight from a decoded PIL image.

    ``sample_count`` evenly spaced columns are taken across
    ``[x_start, x_start + width)``; when it equals ``width`` every pixel of the
    span is returned. Rows outside the image give an empty list.
    """

    def __init__(self) -> None:
        # (source, converted) for the most recent image
        self._last: tuple[Image.Image, Image.Image] | None = None

    def _rgb(self, image: Image.Image) -> Image.Image:
        if image.mode == "RGB":
            return image
        if self._last is None or self._last[0] is not image:
            self._last = (image, image.convert("RGB"))
        return self._last[1]

    async def sample_scan_line(
        self, image: Image.Image, y: int, x_start: int, width: int, sample_count: int
    ) -> list[RGB]:
        return sample_row(self._rgb(image), y, x_start, width, sample_count)


def sample_row(image: Image.Image, y: int, x_start: int, width: int, sample_count: int) -> list[RGB]:
    img_w, img_h = image.size
    y = int(round(y))
    if y < 0 or y >= img_h or width <= 0 or sample_count <= 0:
        return []
    x_start = max(0, int(round(x_start)))
    x_end = min(img_w, x_start + int(width))
    span = x_end - x_start
    if span <= 0:
        return []
    access = image.load()
    if sample_count == span:
        columns: range | list[int] = range(x_start, x_end)
    else:
        step = span / sample_count
        columns = [x_start + min(span - 1, int(i * step)) for i in range(sample_count)]
    pixels: list[RGB] = []
    for x in columns:
        p = access[x, y]
        pixels.append((p[0], p[1], p[2]))
    return pixels
