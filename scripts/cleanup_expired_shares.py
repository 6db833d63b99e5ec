"""Delete expired share links.

Same work as GET /cron/cleanup-shares, for hosts that schedule scripts
instead of HTTP calls:

  python scripts/cleanup_expired_shares.py
"""

import sys
import os

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
  sys.path.insert(0, ROOT)

from meetingai import create_app
from meetingai.services.shares import cleanup_expired_shares


def main():
  app = create_app()
  with app.app_context():
    deleted = cleanup_expired_shares()
    app.logger.info('Cleaned up %s expired shares', deleted)
    print(f'deleted={deleted}')


if __name__ == '__main__':
  main()
