"""
Management command running a scan terminal in the console.

Usage:
    python manage.py scan_station --mode checkout
    python manage.py scan_station --mode checkin

A keyboard-wedge scanner types its payload followed by Enter, so every
line read from stdin is one scan. The operator first scans their badge and
enters their PIN (or registers on first use), then scans items.

Commands accepted while signed in:
    home   sign out and wait for the next badge
    list   show the items the operator holds

End of input exits.
"""

import sys
from getpass import getpass

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand

from apps.accounts.services import (
    build_credential_store,
    SessionHolder,
    IdentityResolver,
    ScanWorkflow,
    WorkflowStage,
    AccountsServiceError,
)
from apps.catalog.services import build_catalog_resolver, LookupFailedError
from apps.core.exceptions import InvalidScanError, StoreUnavailableError
from apps.custody.services import (
    build_custody_ledger,
    checkout_scanned_item,
    checkin_scanned_item,
    CustodyServiceError,
    AlreadyCheckedOutError,
)

HOME = 'home'
LIST = 'list'


class Command(BaseCommand):
    help = 'Run an interactive checkout/checkin scan terminal'

    stealth_options = ('stdin',)

    def add_arguments(self, parser):
        parser.add_argument(
            '--mode',
            choices=['checkout', 'checkin'],
            default='checkout',
            help='Whether item scans check items out or in',
        )

    def handle(self, *args, **options):
        self.stdin = options.get('stdin') or sys.stdin
        self.mode = options['mode']

        credentials = build_credential_store()
        self.workflow = ScanWorkflow(
            credentials=credentials,
            resolver=IdentityResolver(credentials),
            sessions=SessionHolder(),
        )
        self.resolver = build_catalog_resolver()
        self.ledger = build_custody_ledger()

        self.stdout.write(f'Scan station ready ({self.mode}).')
        try:
            while self.authenticate() and self.scan_items():
                pass
        finally:
            self.workflow.sign_out()
        self.stdout.write('Scan station closed.')

    def prompt(self, text):
        """Write a prompt and read one line; None at end of input."""
        self.stdout.write(text, ending='')
        self.stdout.flush()
        line = self.stdin.readline()
        if not line:
            return None
        return line.rstrip('\r\n')

    def prompt_secret(self, text):
        """Like prompt() but without echo when reading from a terminal."""
        if not self.stdin.isatty():
            return self.prompt(text)
        try:
            return getpass(text)
        except EOFError:
            return None

    # -- authentication -------------------------------------------------------

    def authenticate(self):
        """Loop until someone is signed in. False at end of input."""
        while self.workflow.state.stage != WorkflowStage.AUTHENTICATED:
            stage = self.workflow.state.stage

            if stage == WorkflowStage.UNAUTHENTICATED:
                badge = self.prompt('Scan badge: ')
                if badge is None:
                    return False
                if not badge.strip():
                    continue
                try:
                    async_to_sync(self.workflow.scan_user)(badge)
                except InvalidScanError as e:
                    self.stderr.write(str(e))
                except StoreUnavailableError as e:
                    self.stderr.write(str(e.detail))

            elif stage == WorkflowStage.AWAITING_PIN:
                identity = self.workflow.state.identity
                pin = self.prompt_secret(f'Hello {identity.display_name}, enter PIN: ')
                if pin is None:
                    return False
                if not pin:
                    self.workflow.sign_out()
                    continue
                try:
                    if not async_to_sync(self.workflow.enter_pin)(pin):
                        self.stderr.write('Incorrect PIN, try again (empty line to cancel).')
                except StoreUnavailableError as e:
                    self.stderr.write(str(e.detail))

            elif stage == WorkflowStage.AWAITING_REGISTRATION:
                self.stdout.write('New badge. Register to continue (empty line to cancel).')
                name = self.prompt('Your name: ')
                if name is None:
                    return False
                pin = self.prompt_secret('Choose a 4-digit PIN: ') if name else ''
                if pin is None:
                    return False
                if not name or not pin:
                    self.workflow.sign_out()
                    continue
                try:
                    async_to_sync(self.workflow.register)(name, pin)
                except AccountsServiceError as e:
                    self.stderr.write(str(e))
                except StoreUnavailableError as e:
                    self.stderr.write(str(e.detail))

        session = self.workflow.session
        self.stdout.write(self.style.SUCCESS(f'Signed in as {session.display_name}.'))
        return True

    # -- item scans -----------------------------------------------------------

    def scan_items(self):
        """Handle item scans. True after 'home', False at end of input."""
        holder = self.workflow.session.identity
        if self.mode == 'checkin':
            self.list_held(holder)

        while True:
            code = self.prompt(f'Scan item to {self.mode} ({HOME} to sign out): ')
            if code is None:
                return False
            command = code.strip().lower()
            if command == HOME:
                self.workflow.sign_out()
                self.stdout.write('Signed out.')
                return True
            if command == LIST:
                self.list_held(holder)
                continue
            if not command:
                continue
            self.handle_item(code, holder)

    def handle_item(self, code, holder):
        try:
            if self.mode == 'checkout':
                record = async_to_sync(checkout_scanned_item)(
                    resolver=self.resolver,
                    ledger=self.ledger,
                    scanned_code=code,
                    holder=holder,
                )
                self.stdout.write(self.style.SUCCESS(
                    f'Checked out: {record.item_display_name}'
                ))
            else:
                event = async_to_sync(checkin_scanned_item)(
                    ledger=self.ledger,
                    scanned_code=code,
                    holder=holder,
                )
                self.stdout.write(self.style.SUCCESS(
                    f'Checked in: {event.item_display_name}'
                ))
        except AlreadyCheckedOutError as e:
            since = e.record.checkout_time.strftime('%Y-%m-%d %H:%M')
            self.stderr.write(f'{e} (since {since}).')
        except (CustodyServiceError, LookupFailedError, InvalidScanError) as e:
            self.stderr.write(str(e))
        except StoreUnavailableError as e:
            self.stderr.write(str(e.detail))

    def list_held(self, holder):
        try:
            records = async_to_sync(self.ledger.list_active)(holder.user_id)
        except StoreUnavailableError as e:
            self.stderr.write(str(e.detail))
            return
        if not records:
            self.stdout.write('You have no items checked out.')
            return
        self.stdout.write('Your items:')
        for record in records:
            since = record.checkout_time.strftime('%Y-%m-%d %H:%M')
            self.stdout.write(f'  {record.item_id}  {record.item_display_name}  (since {since})')
