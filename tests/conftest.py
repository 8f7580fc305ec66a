import json

import pytest

from acv_core.kinds import DatasetKind, kind_info
from acv_core.records import Record


@pytest.fixture
def customer_records():
    return [
        Record("2024-Q1", "Existing Customer", 23, 647821.48),
        Record("2024-Q1", "New Customer", 6, 224643.30),
    ]


@pytest.fixture
def team_records():
    return [
        Record("2024-Q2", "Mid-Market", 17, 432009.37),
        Record("2023-Q4", "Enterprise", 18, 566120.10),
        Record("2024-Q2", "Enterprise", 15, 530411.90),
        Record("2023-Q4", "Asia Pac", 9, 364088.55),
        Record("2024-Q1", "Mid-Market", 12, 301877.40),
    ]


@pytest.fixture
def raw_rows():
    return {
        DatasetKind.CUSTOMER_TYPE: [
            {"count": 23, "acv": 647821.48, "closed_fiscal_quarter": "2024-Q1", "Cust_Type": "Existing Customer"},
            {"count": 6, "acv": 224643.30, "closed_fiscal_quarter": "2024-Q1", "Cust_Type": "New Customer"},
            {"count": 8, "acv": 298115.02, "closed_fiscal_quarter": "2024-Q2", "Cust_Type": "New Customer"},
        ],
        DatasetKind.TEAM: [
            {"count": 14, "acv": 421033.5, "closed_fiscal_quarter": "2023-Q3", "Team": "Enterprise"},
            {"count": 16, "acv": 388417.92, "closed_fiscal_quarter": "2023-Q3", "Team": "Mid-Market"},
            {"count": 11, "acv": 395204.18, "closed_fiscal_quarter": "2024-Q1", "Team": "Enterprise"},
            {"count": 3, "acv": 1000.0, "Team": "Enterprise"},
        ],
        DatasetKind.INDUSTRY: [
            {"count": 12, "acv": 402118.33, "closed_fiscal_quarter": "2023-Q3", "Acct_Industry": "Retail"},
            {"count": 5, "acv": 123275.42, "closed_fiscal_quarter": "2023-Q3"},
        ],
        DatasetKind.ACV_RANGE: [
            {"count": 6, "acv": 612874.2, "closed_fiscal_quarter": "2023-Q3", "ACV_Range": "$50K-$100K"},
            {"count": 16, "acv": 152760.09, "closed_fiscal_quarter": "2023-Q3", "ACV_Range": "$0-$10K"},
            {"count": 8, "acv": 301553.4, "closed_fiscal_quarter": "2023-Q3", "ACV_Range": "$10K-$50K"},
        ],
    }


@pytest.fixture
def data_dir(tmp_path, raw_rows):
    for kind, rows in raw_rows.items():
        (tmp_path / kind_info(kind).file_name).write_text(json.dumps(rows), encoding="utf-8")
    return tmp_path
