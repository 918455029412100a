#!/usr/bin/env python3
"""Print a participant's lookup key and its KEY: payload for badge printing."""
import sys

from dotenv import load_dotenv, find_dotenv

env_path = find_dotenv()
if env_path:
    load_dotenv(env_path, override=False)

from rollcall.core.exceptions import ValidationError  # noqa: E402
from rollcall.core.keys import derive_key_from_name  # noqa: E402
from rollcall.services.identity import encode_key_payload  # noqa: E402

if len(sys.argv) != 3:
    print("Usage: python derive_key.py 'Full Name' YYYY-MM-DD")
    print()
    print("Example:")
    print("  python derive_key.py 'Jane Smith' 1990-05-17")
    sys.exit(1)

full_name, birth_date = sys.argv[1], sys.argv[2]

try:
    key = derive_key_from_name(full_name, birth_date)
except ValidationError as e:
    print(f"❌ Error: {e.message}")
    sys.exit(1)

if key is None:
    print("❌ Error: Name and birth date are required")
    sys.exit(1)

print(f"Key:     {key}")
print(f"Payload: {encode_key_payload(key)}")
