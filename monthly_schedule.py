#!/usr/bin/env python3
"""
Monthly Schedule Builder

Creates a new work-schedule spreadsheet from a template: every sheet of
the template is copied into a fresh spreadsheet, the copies get their
original names back, the default blank sheet is removed and the current
year and month are written into A1 and A3.
"""

import os
import sys
import logging
import argparse
import traceback
from datetime import datetime
import pytz
from dotenv import load_dotenv
from googleapiclient.errors import HttpError
from tqdm import tqdm

from sheet_auth import get_google_credentials, build_sheets_service

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# Default values from environment variables
DEFAULT_TEMPLATE_SPREADSHEET_ID = os.getenv('TEMPLATE_SPREADSHEET_ID')
DEFAULT_TITLE = os.getenv('SCHEDULE_TITLE', '勤務表作成テスト')
DEFAULT_CREDENTIALS_FILE = os.getenv('CREDENTIALS_FILE', 'credentials.json')
DEFAULT_TOKEN_FILE = os.getenv('TOKEN_FILE', 'token.pickle')
DEFAULT_TIMEZONE = os.getenv('TIMEZONE')
DEFAULT_LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
DEFAULT_LOG_FILE = os.getenv('LOG_FILE', 'monthly_schedule.log')

# Marks Sheets puts on the title of a copied sheet, per UI locale
COPY_SUFFIX = 'のコピー'
COPY_PREFIX = 'Copy of '

SPREADSHEET_URL = 'https://docs.google.com/spreadsheets/d/{}/edit'


def setup_logging(level=DEFAULT_LOG_LEVEL, log_file=DEFAULT_LOG_FILE):
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )

    # Prevent other loggers from flooding the console
    logging.getLogger('googleapiclient.discovery').setLevel(logging.WARNING)
    logging.getLogger('google_auth_oauthlib.flow').setLevel(logging.WARNING)
    logging.getLogger('urllib3.connectionpool').setLevel(logging.WARNING)


def current_date(timezone=None):
    """Today's date, in the given pytz zone or in local time."""
    if timezone:
        return datetime.now(pytz.timezone(timezone)).date()
    return datetime.now().date()


def trim_copy_title(title):
    """Strip the marker Sheets adds to the title of a copied sheet."""
    if title.endswith(COPY_SUFFIX):
        return title[:-len(COPY_SUFFIX)]
    if title.startswith(COPY_PREFIX):
        return title[len(COPY_PREFIX):]
    return title


def fill_title(title, today):
    """Fill {year} and {month} in a title; any other braces are kept as typed."""
    return title.replace('{year}', str(today.year)).replace('{month}', str(today.month))


def a1_range(sheet_title, cell_range):
    """Build an A1 range, quoting the sheet title."""
    escaped = sheet_title.replace("'", "''")
    return f"'{escaped}'!{cell_range}"


def sheet_id_of(sheet):
    # The API leaves out zero-valued fields, so the first sheet's id of 0 may be missing
    return sheet['properties'].get('sheetId', 0)


def create_spreadsheet(service, title):
    """Create an empty spreadsheet with the given title."""
    try:
        logger.info(f"Creating spreadsheet: {title}")
        spreadsheet = service.spreadsheets().create(
            body={'properties': {'title': title}}
        ).execute()
        logger.info(f"Created spreadsheet with ID: {spreadsheet['spreadsheetId']}")
        return spreadsheet
    except Exception as e:
        logger.error(f"Error creating spreadsheet {title}: {str(e)}")
        raise


def get_spreadsheet(service, spreadsheet_id):
    try:
        logger.debug(f"Fetching spreadsheet: {spreadsheet_id}")
        return service.spreadsheets().get(spreadsheetId=spreadsheet_id).execute()
    except Exception as e:
        logger.error(f"Error fetching spreadsheet {spreadsheet_id}: {str(e)}")
        raise


def rename_sheet(service, spreadsheet_id, sheet_id, title):
    try:
        logger.debug(f"Renaming sheet {sheet_id} to '{title}'")
        body = {
            'requests': [{
                'updateSheetProperties': {
                    'properties': {'sheetId': sheet_id, 'title': title},
                    'fields': 'title'
                }
            }]
        }
        return service.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id, body=body
        ).execute()
    except Exception as e:
        logger.error(f"Unable to update sheet name to '{title}': {str(e)}")
        raise


def copy_sheets(service, source, source_id, destination_id, reserved_titles=()):
    """Copy every sheet of ``source`` into the destination and rename the copies.

    Copies whose restored title is in ``reserved_titles`` would clash with a
    sheet that still exists in the destination, so their renames are
    returned as ``(sheet_id, title)`` pairs for the caller to apply later.
    """
    deferred = []
    sheets = source.get('sheets', [])

    for sheet in tqdm(sheets, desc="Copying sheets", unit="sheet"):
        source_title = sheet['properties'].get('title', '')
        try:
            logger.info(f"Copying sheet: {source_title}")
            copied = service.spreadsheets().sheets().copyTo(
                spreadsheetId=source_id,
                sheetId=sheet_id_of(sheet),
                body={'destinationSpreadsheetId': destination_id}
            ).execute()
        except Exception as e:
            logger.error(f"Error copying sheet {source_title}: {str(e)}")
            raise

        new_title = trim_copy_title(copied['title'])
        if new_title in reserved_titles:
            logger.debug(f"Deferring rename of '{copied['title']}' to '{new_title}'")
            deferred.append((copied['sheetId'], new_title))
            continue

        rename_sheet(service, destination_id, copied['sheetId'], new_title)

    logger.info(f"Copied {len(sheets)} sheets")
    return deferred


def delete_blank_sheet(service, new_spreadsheet, destination_id):
    """Delete the default sheet a new spreadsheet starts with."""
    blank_sheet_id = sheet_id_of(new_spreadsheet['sheets'][0])
    try:
        logger.info(f"Deleting blank sheet {blank_sheet_id}")
        body = {'requests': [{'deleteSheet': {'sheetId': blank_sheet_id}}]}
        return service.spreadsheets().batchUpdate(
            spreadsheetId=destination_id, body=body
        ).execute()
    except Exception as e:
        logger.error(f"Unable to delete sheet: {str(e)}")
        raise


def update_cells_year_month(service, destination, destination_id, today, all_sheets=False):
    """Write the year into A1 and the month into A3."""
    sheets = destination.get('sheets', [])
    if not all_sheets:
        sheets = sheets[:1]

    for sheet in sheets:
        sheet_name = sheet['properties']['title']
        body = {
            'range': a1_range(sheet_name, 'A1:A3'),
            'majorDimension': 'ROWS',
            'values': [[today.year], [], [today.month]]
        }
        try:
            logger.info(f"Writing {today.year}/{today.month} to sheet: {sheet_name}")
            service.spreadsheets().values().update(
                spreadsheetId=destination_id,
                range=body['range'],
                valueInputOption='RAW',
                body=body
            ).execute()
        except Exception as e:
            logger.error(f"Unable to update cells with year and month: {str(e)}")
            raise


def run(service, template_id, title=DEFAULT_TITLE, today=None, all_sheets=False):
    """Build the monthly spreadsheet from the template and return its ID."""
    today = today or current_date()

    new_spreadsheet = create_spreadsheet(service, fill_title(title, today))
    destination_id = new_spreadsheet['spreadsheetId']

    source = get_spreadsheet(service, template_id)
    blank_titles = {sheet['properties'].get('title') for sheet in new_spreadsheet.get('sheets', [])[:1]}

    deferred = copy_sheets(service, source, template_id, destination_id, blank_titles)

    if source.get('sheets'):
        delete_blank_sheet(service, new_spreadsheet, destination_id)
    else:
        logger.warning("Template has no sheets; keeping the blank sheet")

    for sheet_id, sheet_title in deferred:
        rename_sheet(service, destination_id, sheet_id, sheet_title)

    destination = get_spreadsheet(service, destination_id)
    update_cells_year_month(service, destination, destination_id, today, all_sheets)

    return destination_id


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Create a monthly work schedule spreadsheet from a template')
    parser.add_argument('--template-id', default=DEFAULT_TEMPLATE_SPREADSHEET_ID,
                        help=f'Template spreadsheet ID (default: {DEFAULT_TEMPLATE_SPREADSHEET_ID})')
    parser.add_argument('--title', default=DEFAULT_TITLE,
                        help='Title of the new spreadsheet; {year} and {month} are filled in '
                             f'(default: {DEFAULT_TITLE})')
    parser.add_argument('--credentials', default=DEFAULT_CREDENTIALS_FILE,
                        help=f'OAuth client secrets file (default: {DEFAULT_CREDENTIALS_FILE})')
    parser.add_argument('--token', default=DEFAULT_TOKEN_FILE,
                        help=f'Cached token file (default: {DEFAULT_TOKEN_FILE})')
    parser.add_argument('--timezone', default=DEFAULT_TIMEZONE,
                        help='Timezone used for the current year and month (default: local time)')
    parser.add_argument('--all-sheets', action='store_true',
                        help='Write year and month to every sheet instead of only the first')
    parser.add_argument('--no-browser', action='store_true',
                        help='Paste the authorization code instead of using a local redirect server')
    parser.add_argument('--log-level', default=DEFAULT_LOG_LEVEL,
                        help=f'Logging level (default: {DEFAULT_LOG_LEVEL})')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.log_level)

    if not args.template_id:
        logger.error("TEMPLATE_SPREADSHEET_ID not set; pass --template-id or add it to .env")
        return 1

    logger.info("Starting monthly schedule creation")
    logger.debug(f"Using template ID: {args.template_id}")

    try:
        today = current_date(args.timezone)
    except pytz.UnknownTimeZoneError:
        logger.error(f"Unknown timezone: {args.timezone}")
        return 1

    try:
        creds = get_google_credentials(
            args.credentials, args.token, use_local_server=not args.no_browser
        )
        service = build_sheets_service(creds)
        spreadsheet_id = run(service, args.template_id, args.title, today, args.all_sheets)
    except (HttpError, FileNotFoundError) as e:
        logger.error(f"Monthly schedule creation failed: {e}")
        logger.debug(traceback.format_exc())
        return 1

    logger.info(f"Created schedule: {SPREADSHEET_URL.format(spreadsheet_id)}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
