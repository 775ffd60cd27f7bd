import sys

from django.core.management.base import BaseCommand

from console.session import SessionProvider, TokenStore
from console.shell import Shell


class Command(BaseCommand):
    help = "Run the admin console against the dashboard API."

    def add_arguments(self, parser):
        parser.add_argument("commands", nargs="*", help="Command lines to run instead of reading stdin.")
        parser.add_argument("--base-url", help="API base URL (defaults to DASHBOARD_API_BASE).")
        parser.add_argument("--session-file", help="Token file (defaults to DASHBOARD_SESSION_FILE).")

    def handle(self, *args, **options):
        provider = SessionProvider(
            store=TokenStore(options["session_file"]),
            base_url=options["base_url"],
        )
        shell = Shell(provider)
        self.stdout.write(shell.start())

        if options["commands"]:
            for line in options["commands"]:
                self.stdout.write(f"\n> {line}")
                self.stdout.write(shell.execute(line))
            return

        interactive = sys.stdin.isatty()
        while True:
            if interactive:
                self.stdout.write("\n> ", ending="")
                self.stdout.flush()
            line = sys.stdin.readline()
            if not line or line.strip() in ("quit", "exit"):
                break
            self.stdout.write(shell.execute(line.strip()))
