"""Run one sync job inline, without Redis.

Usage:
  python scripts/run_refresh.py asset-items [COMPANY_NAME]
  python scripts/run_refresh.py recorded-meetings-zoom [COMPANY_NAME]
  python scripts/run_refresh.py recorded-meetings-google [COMPANY_NAME]

Without a company name the job runs for every company.
"""

import os
import sys

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from opsync import create_app
from opsync.blueprints.webhooks.routes import CRON_JOBS
from opsync.models.company import Company


def main(argv):
    if len(argv) < 2 or argv[1] not in CRON_JOBS:
        print(__doc__)
        return 2
    job = CRON_JOBS[argv[1]]

    app = create_app()
    with app.app_context():
        q = Company.query.order_by(Company.id)
        if len(argv) > 2:
            q = q.filter_by(name=argv[2])
        companies = q.all()
        if not companies:
            print('no matching companies')
            return 1
        for company in companies:
            print(f'{argv[1]}: {company.name}')
            job(company.id)
    return 0


if __name__ == '__main__':
    sys.exit(main(sys.argv))
