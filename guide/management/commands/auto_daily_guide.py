import json

from django.core.management.base import BaseCommand, CommandError

from guide.services import run_auto_daily_guide


class Command(BaseCommand):
    help = "Genera las instrucciones de hoy si la guía está activa y aún no existen (mismo criterio que el dashboard)."

    def handle(self, *args, **options):
        body, code = run_auto_daily_guide()
        if code >= 400:
            raise CommandError(f"✖ auto_daily_guide ERROR: {body.get('error')}")
        style = self.style.SUCCESS if body.get('success') else self.style.NOTICE
        self.stdout.write(style(json.dumps(body, ensure_ascii=False)))
