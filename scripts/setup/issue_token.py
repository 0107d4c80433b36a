# scripts/setup/issue_token.py
"""
Mint a bearer token for a user id and role (admin consoles, gate tooling, smoke tests).
Usage: python scripts/setup/issue_token.py --user admin-01 --role admin
"""

import argparse
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from app.utils.security import ROLES, create_access_token


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Issue a JWT for the Campus Pass API")
    parser.add_argument("--user", required=True, help="User id placed in the 'sub' claim")
    parser.add_argument("--role", default="user", choices=sorted(ROLES))
    parser.add_argument("--minutes", type=int, default=None, help="Lifetime (defaults to JWT_EXPIRE_MINUTES)")
    args = parser.parse_args()

    print(create_access_token(args.user, args.role, args.minutes))
