#!/usr/bin/env python3
"""
Environment Check Script

This script checks your current environment configuration and provides
recommendations for missing or incorrect settings.
"""

import os
from dotenv import load_dotenv


def check_env_file():
    """Check if .env file exists and load it."""
    if os.path.exists('.env'):
        load_dotenv()
        return True
    else:
        print("❌ .env file not found!")
        print("   Copy .env.example to .env and fill in TEMPLATE_SPREADSHEET_ID")
        return False


def check_required_vars():
    """Check required environment variables."""
    required_vars = {
        'TEMPLATE_SPREADSHEET_ID': 'ID of the template spreadsheet to copy sheets from',
    }

    missing = []
    for var, description in required_vars.items():
        if not os.getenv(var):
            missing.append(f"{var} ({description})")
        else:
            print(f"✅ {var}")

    if missing:
        print("\n❌ Missing required variables:")
        for var in missing:
            print(f"   - {var}")
        return False

    return True


def check_oauth_files():
    """Check the OAuth client file and the cached token."""
    credentials_file = os.getenv('CREDENTIALS_FILE', 'credentials.json')
    token_file = os.getenv('TOKEN_FILE', 'token.pickle')

    print("\n🔑 OAuth Files:")
    if os.path.exists(credentials_file):
        print(f"✅ {credentials_file}")
        found = True
    else:
        print(f"❌ {credentials_file} not found (download a Desktop OAuth client from the Cloud Console)")
        found = False

    if os.path.exists(token_file):
        print(f"✅ {token_file}")
    else:
        print(f"⚠️  {token_file} not found; you will be asked to authorize on the first run")

    return found


def check_optional_vars():
    """Check optional environment variables."""
    optional_vars = {
        'SCHEDULE_TITLE': 'Title of the new spreadsheet (default: 勤務表作成テスト)',
        'TIMEZONE': 'Timezone for the year and month (default: local time)',
        'LOG_LEVEL': 'Logging level (default: INFO)',
        'LOG_FILE': 'Log file (default: monthly_schedule.log)'
    }

    print("\n⚙️  Optional Configuration:")
    for var, description in optional_vars.items():
        value = os.getenv(var, 'Not set (using default)')
        print(f"   {var}: {value}")


def main():
    """Main function."""
    print("🔍 Environment Configuration Check")
    print("=" * 40)

    # Check if .env file exists
    if not check_env_file():
        return False

    print("\n📋 Required Variables:")
    required_ok = check_required_vars()
    oauth_ok = check_oauth_files()
    check_optional_vars()

    print("\n" + "=" * 40)

    if required_ok and oauth_ok:
        print("✅ All required settings are configured!")
        print("\n🚀 You can now run: python monthly_schedule.py")
    else:
        print("❌ Some required settings are missing!")
        print("\n🔧 To fix this:")
        print("   - Run: python scripts/update_template_id.py <template-id>")
        print("   - Or edit .env file manually")

    return required_ok and oauth_ok


if __name__ == '__main__':
    main()
