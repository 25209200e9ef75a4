"""
Management command to show the configuration genx resolves for an HTML page.

Runs the full bootstrap over a file (or stdin) and prints every enhanced
element with its merged configuration. Useful for checking which notation
wins when an author mixes styles on one element.
"""

import asyncio
import json
import sys

from django.core.management.base import BaseCommand, CommandError

from genx.context import GenxContext
from genx.notation import describe_element, detect_prefix


class Command(BaseCommand):
    help = 'Bootstrap genx over an HTML file and print each element\'s resolved configuration'

    requires_system_checks = []

    def add_arguments(self, parser):
        parser.add_argument(
            'path',
            help='HTML file to inspect ("-" reads from stdin)',
        )
        parser.add_argument(
            '--prefix',
            action='append',
            dest='prefixes',
            help='Only show elements owned by this module prefix (repeatable)',
        )
        parser.add_argument(
            '--json',
            action='store_true',
            help='Print the result as JSON',
        )
        parser.add_argument(
            '--stats',
            action='store_true',
            help='Show bootstrap timings and parser outcomes',
        )

    def _read(self, path):
        if path == '-':
            return sys.stdin.read()
        try:
            with open(path, encoding='utf-8') as f:
                return f.read()
        except OSError as e:
            raise CommandError(f'Cannot read {path}: {e}')

    def handle(self, *args, **options):
        html = self._read(options['path'])
        prefixes = set(options.get('prefixes') or [])
        as_json = options.get('json')
        show_stats = options.get('stats')

        context = GenxContext(html, config={'OBSERVE': False})
        stats = asyncio.run(context.bootstrap())

        rows = []
        for element in context.scan().elements:
            prefix = detect_prefix(element, context.notation)
            if prefixes and prefix not in prefixes:
                continue
            rows.append({
                'element': describe_element(element),
                'prefix': prefix,
                'config': context.get_config(element),
            })

        if as_json:
            payload = {'elements': rows}
            if show_stats:
                payload['stats'] = stats
            self.stdout.write(json.dumps(payload, indent=2, default=str))
            return

        if not rows:
            self.stdout.write(self.style.WARNING('No genx elements found'))
        for row in rows:
            self.stdout.write(f"{row['element']} [{row['prefix']}]")
            for key, value in row['config'].items():
                self.stdout.write(f'  {key}: {value!r}')

        if stats['failed']:
            self.stdout.write(
                self.style.WARNING(f"Parsers failed to load: {', '.join(stats['failed'])}")
            )

        if show_stats:
            self.stdout.write('\n' + '=' * 60)
            self.stdout.write('BOOTSTRAP')
            self.stdout.write('=' * 60)
            self.stdout.write(f"Elements:     {stats['elements']['parsed']}/{stats['elements']['total']} parsed")
            self.stdout.write(f"Styles:       {', '.join(stats['styles']) or '-'}")
            self.stdout.write(f"Parsers:      {', '.join(stats['parsers']) or '-'}")
            for phase, duration in stats['phases'].items():
                self.stdout.write(f'{phase + ":":<14}{duration:.2f}ms')
            self.stdout.write(f"Total:        {stats['total']:.2f}ms")
            self.stdout.write('=' * 60)

        self.stdout.write(self.style.SUCCESS(f'Inspected {len(rows)} element(s)'))
