#!/usr/bin/env python3
"""
Simple script to update the template spreadsheet ID in .env file
"""

import os
import re


def update_template_id(new_id, env_file='.env'):
    """Update TEMPLATE_SPREADSHEET_ID in the env file."""

    if not os.path.exists(env_file):
        print(f"❌ {env_file} file not found!")
        return False

    with open(env_file, 'r') as f:
        content = f.read()

    pattern = r'^TEMPLATE_SPREADSHEET_ID=.*$'
    replacement = f'TEMPLATE_SPREADSHEET_ID={new_id}'

    if re.search(pattern, content, flags=re.MULTILINE):
        new_content = re.sub(pattern, lambda _: replacement, content, flags=re.MULTILINE)

        with open(env_file, 'w') as f:
            f.write(new_content)

        print(f"✅ Updated TEMPLATE_SPREADSHEET_ID to: {new_id}")
        return True
    else:
        print(f"❌ TEMPLATE_SPREADSHEET_ID not found in {env_file} file")
        return False


if __name__ == "__main__":
    import sys

    if len(sys.argv) != 2:
        print("Usage: python update_template_id.py <template-spreadsheet-id>")
        print("Example: python update_template_id.py 1BxiMVs0XRA5nFMdKvBdBZjgmUUqptlbs74OgvE2upms")
        sys.exit(1)

    if not update_template_id(sys.argv[1]):
        sys.exit(1)
