import os
import pickle
import logging
import traceback
from google.auth.transport.requests import Request
from google.auth.exceptions import RefreshError
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

logger = logging.getLogger(__name__)

# If modifying these scopes, delete the token file.
SCOPES = ['https://www.googleapis.com/auth/spreadsheets']

# OAuth configuration
OAUTH_PORT = 8081


def load_token(token_file):
    """Load pickled credentials, or return None if there are none."""
    if not os.path.exists(token_file):
        return None
    logger.debug(f"Found existing token file: {token_file}")
    try:
        with open(token_file, 'rb') as token:
            creds = pickle.load(token)
    except (pickle.UnpicklingError, EOFError, AttributeError, ValueError) as e:
        logger.warning(f"Ignoring unreadable token file {token_file}: {e}")
        return None
    logger.debug(f"Loaded credentials from {token_file}")
    return creds


def save_token(token_file, creds):
    logger.info(f"Saving credential file to: {token_file}")
    fd = os.open(token_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    # An existing file keeps its old mode through os.open
    os.fchmod(fd, 0o600)
    with os.fdopen(fd, 'wb') as token:
        pickle.dump(creds, token)


def run_oauth_flow(credentials_file, scopes, use_local_server=True):
    """Run the installed-app authorization flow and return fresh credentials."""
    if not os.path.exists(credentials_file):
        raise FileNotFoundError(
            f"{credentials_file} not found. Create an OAuth client ID "
            "(Desktop app) in the Google Cloud Console and download it here."
        )

    logger.debug(f"Loading {credentials_file}")
    flow = InstalledAppFlow.from_client_secrets_file(credentials_file, scopes)

    if use_local_server:
        return flow.run_local_server(port=OAUTH_PORT, access_type='offline')

    flow.redirect_uri = f'http://localhost:{OAUTH_PORT}/'
    auth_url, _ = flow.authorization_url(access_type='offline')

    print("\nGo to the following link in your browser then type the authorization code:")
    print(auth_url)
    code = input("Enter the authorization code: ").strip()

    flow.fetch_token(code=code)
    logger.debug("Successfully obtained credentials from authorization code")
    return flow.credentials


def get_google_credentials(credentials_file='credentials.json', token_file='token.pickle',
                           scopes=SCOPES, use_local_server=True):
    """Get or refresh Google API credentials.

    The token file is written the first time the authorization flow
    completes and again whenever the access token is refreshed.
    """
    try:
        logger.debug("Starting credential retrieval process")
        creds = load_token(token_file)

        if creds and creds.valid:
            logger.debug("Cached credentials are valid")
            return creds

        if creds and creds.expired and creds.refresh_token:
            logger.debug("Attempting to refresh expired credentials")
            try:
                creds.refresh(Request())
                logger.info("Refreshed expired credentials")
            except RefreshError as e:
                logger.warning(f"Failed to refresh credentials: {e}")
                creds = None  # Force new OAuth flow
        else:
            creds = None

        if not creds:
            logger.info("Starting new OAuth flow")
            creds = run_oauth_flow(credentials_file, scopes, use_local_server)

        save_token(token_file, creds)
        return creds
    except Exception as e:
        logger.error(f"Error in get_google_credentials: {str(e)}")
        logger.debug(traceback.format_exc())
        raise


def build_sheets_service(creds):
    """Build a Sheets v4 API client."""
    return build('sheets', 'v4', credentials=creds, cache_discovery=False)
