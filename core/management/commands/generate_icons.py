# core/management/commands/generate_icons.py
from pathlib import Path

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from PIL import Image, ImageDraw, ImageFont

SYMBOL = "Ψ"
GRADIENT = ((0x19, 0x7B, 0xBD), (0x12, 0x5E, 0x8A))
SIZES = [16, 32, 48, 64, 128, 256, 512, 1024]
BASE_SIZE = 1024
FONT_CANDIDATES = ("DejaVuSans-Bold.ttf", "Arial Bold.ttf", "arialbd.ttf")

# Extra renders consumed by the platform installers
PLATFORM_ICONS = {
    "icon.png": 512,
    "icon-for-icns.png": 1024,  # macOS
    "icon-for-ico.png": 256,    # Windows
}


def _font(size: int):
    for name in FONT_CANDIDATES:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def _diagonal_gradient(size: int) -> Image.Image:
    n = 256
    mask = Image.new("L", (n, n))
    mask.putdata([(x + y) * 255 // (2 * (n - 1)) for y in range(n) for x in range(n)])
    start = Image.new("RGBA", (size, size), GRADIENT[0] + (255,))
    end = Image.new("RGBA", (size, size), GRADIENT[1] + (255,))
    return Image.composite(end, start, mask.resize((size, size)))


def render_icon(size: int = BASE_SIZE) -> Image.Image:
    """The app icon: white Ψ on a rounded blue gradient square."""
    img = _diagonal_gradient(size)
    corners = Image.new("L", (size, size), 0)
    ImageDraw.Draw(corners).rounded_rectangle((0, 0, size - 1, size - 1), radius=int(size * 0.15), fill=255)
    img.putalpha(corners)
    draw = ImageDraw.Draw(img)
    draw.text((size / 2, size / 2), SYMBOL, font=_font(int(size * 0.7)), fill="white", anchor="mm")
    return img


class Command(BaseCommand):
    help = "Render the application icons (PNG, all platform sizes)."

    def add_arguments(self, parser):
        parser.add_argument("--output", default=None, help="Target directory (default: settings.ICONS_DIR)")

    def handle(self, *args, **options):
        out = Path(options["output"] or settings.ICONS_DIR)
        try:
            out.mkdir(parents=True, exist_ok=True)
            base = render_icon(BASE_SIZE)
            for size in SIZES:
                name = f"icon-{size}x{size}.png"
                base.resize((size, size), Image.Resampling.LANCZOS).save(out / name, format="PNG")
                self.stdout.write(f"generated {name}")
            for name, size in PLATFORM_ICONS.items():
                base.resize((size, size), Image.Resampling.LANCZOS).save(out / name, format="PNG")
                self.stdout.write(f"generated {name}")
        except OSError as exc:
            raise CommandError(f"Failed to generate icons: {exc}") from exc
        self.stdout.write(self.style.SUCCESS(f"All icons written to {out}"))
