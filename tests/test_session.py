import asyncio

from acv_core.datasource import FetchFailed, FileDataSource
from acv_core.kinds import DatasetKind
from acv_core.session import DashboardSession, LoadStatus


def test_load_ready(data_dir):
    session = DashboardSession()
    state = session.load(DatasetKind.TEAM, FileDataSource(data_dir))
    assert state.status is LoadStatus.READY
    assert state.kind is DatasetKind.TEAM
    assert state.dropped == 1
    assert state.aggregation.categories == ("Enterprise", "Mid-Market")


def test_load_failure_sets_error(tmp_path):
    session = DashboardSession()
    state = session.load(DatasetKind.TEAM, FileDataSource(tmp_path))
    assert state.status is LoadStatus.ERROR
    assert state.error == "Failed to fetch Team data"
    assert state.aggregation is None


def test_stale_response_is_discarded(raw_rows):
    session = DashboardSession()
    first = session.begin(DatasetKind.TEAM)
    second = session.begin(DatasetKind.INDUSTRY)
    assert session.resolve(first, raw_rows[DatasetKind.TEAM]) is False
    assert session.state.status is LoadStatus.LOADING
    assert session.reject(first, FetchFailed(DatasetKind.TEAM)) is False
    assert session.resolve(second, raw_rows[DatasetKind.INDUSTRY]) is True
    assert session.state.kind is DatasetKind.INDUSTRY
    assert session.state.aggregation.categories == ("", "Retail")


def test_late_async_response_loses(raw_rows):
    session = DashboardSession()

    async def scenario():
        release = asyncio.Event()

        async def slow(kind):
            await release.wait()
            return raw_rows[DatasetKind.TEAM]

        async def fast(kind):
            return raw_rows[kind]

        pending = asyncio.create_task(session.load_async(DatasetKind.TEAM, slow))
        await asyncio.sleep(0)
        await session.load_async(DatasetKind.ACV_RANGE, fast)
        release.set()
        await pending

    asyncio.run(scenario())
    assert session.state.status is LoadStatus.READY
    assert session.state.kind is DatasetKind.ACV_RANGE
    assert session.state.aggregation.categories == ("$0-$10K", "$10K-$50K", "$50K-$100K")


def test_select_uses_category_color(data_dir):
    session = DashboardSession()
    session.load(DatasetKind.TEAM, FileDataSource(data_dir))
    selection = session.select("Mid-Market")
    assert selection.color == session.state.aggregation.colors["Mid-Market"]
    assert [r.acv for r in session.drilldown.rows()] == [388417.92]


def test_select_ignored_while_loading():
    session = DashboardSession()
    session.begin(DatasetKind.TEAM)
    assert session.select("Enterprise") is None
    assert not session.drilldown.is_open


def test_new_load_closes_drilldown(data_dir):
    session = DashboardSession()
    source = FileDataSource(data_dir)
    session.load(DatasetKind.TEAM, source)
    session.select("Enterprise")
    session.load(DatasetKind.INDUSTRY, source)
    assert not session.drilldown.is_open
