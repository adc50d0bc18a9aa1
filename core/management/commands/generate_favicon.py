# core/management/commands/generate_favicon.py
from pathlib import Path

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from PIL import Image

FAVICON_SIZES = [(16, 16), (32, 32), (48, 48)]


class Command(BaseCommand):
    help = "Build favicon.ico from the generated application icon."

    def add_arguments(self, parser):
        parser.add_argument("--source", default=None, help="Source PNG (default: ICONS_DIR/icon-for-ico.png)")
        parser.add_argument("--output", default=None, help="Target .ico (default: settings.FAVICON_PATH)")

    def handle(self, *args, **options):
        source = Path(options["source"] or Path(settings.ICONS_DIR) / "icon-for-ico.png")
        output = Path(options["output"] or settings.FAVICON_PATH)
        if not source.exists():
            raise CommandError(f"Source icon not found: {source} (run generate_icons first)")
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            with Image.open(source) as img:
                img.convert("RGBA").save(output, format="ICO", sizes=FAVICON_SIZES)
        except OSError as exc:
            raise CommandError(f"Failed to generate favicon: {exc}") from exc
        self.stdout.write(self.style.SUCCESS(f"Generated {output.name} ({', '.join(f'{w}x{h}' for w, h in FAVICON_SIZES)})"))
