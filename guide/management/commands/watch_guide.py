import signal
import threading

from django.conf import settings
from django.core.management.base import BaseCommand

from guide.services import get_controller


class Command(BaseCommand):
    help = "Escucha cambios en `guide` y `SMART_FARM/sensors` y genera las instrucciones del día cuando falten."

    def add_arguments(self, parser):
        parser.add_argument('--language', default=settings.GUIDE_DEFAULT_LANGUAGE,
                            help='Idioma de las instrucciones generadas (default=GUIDE_DEFAULT_LANGUAGE).')

    def handle(self, *args, **options):
        stop = threading.Event()
        signal.signal(signal.SIGINT, lambda *_: stop.set())
        signal.signal(signal.SIGTERM, lambda *_: stop.set())

        detach = get_controller().attach(language=options['language'])
        self.stdout.write(self.style.NOTICE("[watch_guide] Escuchando cambios... (Ctrl+C para salir)"))
        try:
            stop.wait()
        finally:
            detach()
        self.stdout.write(self.style.SUCCESS("[watch_guide] Fin"))
