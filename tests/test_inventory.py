"""End-to-end tests for the inventory pass over an in-memory Loop sidebar."""

import asyncio

import pytest

from conftest import FakeDriver, FakeElement, tree_row
from loop_inventory.config import InventoryConfig
from loop_inventory.discovery.containers import NO_CONTAINERS_NOTICE
from loop_inventory.exceptions import NavigationError
from loop_inventory.intelligence.selector_library import SelectorLibrary
from loop_inventory.inventory import InventoryRunner
from loop_inventory.manifest import NO_LOCATION_NOTICE
from loop_inventory.models import ContainerEntry

BASE = "https://loop.cloud.microsoft/"


class LoopApp:
    """A sidebar that stays put plus a content area that each workspace fills."""

    def __init__(self, driver_class=FakeDriver):
        self.sidebar = FakeElement('[data-testid="workspace-list"]')
        self.content = FakeElement()
        self.driver = driver_class(FakeElement().add(self.sidebar, self.content), location=BASE)

    def show(self, *rows):
        self.content.children = [FakeElement('[role="tree"]').add(*rows)]

    def workspace(self, title, path=None, rows=(), **attrs):
        """Add a sidebar entry; opening it shows ``rows``."""
        item_attrs = {"aria-label": title, **attrs}
        item = FakeElement(
            '[data-testid="workspace-item"]',
            f'[aria-label="{title}"]',
            attrs=item_attrs,
            on_click=lambda _: self.show(*rows),
        )
        if path:
            item.attrs["href"] = path
            self.driver.routes[BASE + path.lstrip("/")] = lambda _: self.show(*rows)
        self.sidebar.add(item)
        return item


class TestInventoryRun:
    """Tests for InventoryRunner.run."""

    @pytest.mark.asyncio
    async def test_full_pass(self, fast_config):
        app = LoopApp()
        app.workspace("Alpha", "/ws/alpha", rows=[
            tree_row("Overview", level=1, href="/p/overview", **{"data-page-id": "pg-1"}),
            tree_row("Notes", level=2, href="/p/notes"),
            tree_row("Alpha", level=1),
            tree_row("Roadmap", level=1, href="https://loop.cloud.microsoft/p/roadmap"),
        ])
        app.workspace("Beta", "/ws/beta", rows=[tree_row("Only page", level=1, href="/p/only")])

        manifest = await InventoryRunner(app.driver, fast_config).run()

        assert manifest.total_containers == 2
        assert manifest.total_pages == 4
        assert manifest.notices == []

        alpha = manifest.containers[0]
        assert alpha.location_ref == "https://loop.cloud.microsoft/ws/alpha"
        assert [(n.id, n.title, n.depth, n.parent_id) for n in alpha.children] == [
            ("pg-1", "Overview", 0, None),
            ("notes_1", "Notes", 1, "pg-1"),
            ("roadmap_3", "Roadmap", 0, None),
        ]
        assert alpha.children[0].child_ids == ("notes_1",)
        assert alpha.children[1].location_ref == "https://loop.cloud.microsoft/p/notes"
        assert app.driver.navigations == [
            "https://loop.cloud.microsoft/ws/alpha",
            "https://loop.cloud.microsoft/ws/beta",
        ]

    @pytest.mark.asyncio
    async def test_manifest_wire_format(self, fast_config):
        app = LoopApp()
        app.workspace("Alpha", "/ws/alpha", rows=[tree_row("Page", level=1, href="/p/1")])

        data = (await InventoryRunner(app.driver, fast_config).run()).to_dict()

        assert data["loopUrl"] == fast_config.base_url
        assert data["totalWorkspaces"] == 1
        assert data["totalPages"] == 1
        assert set(data["workspaces"][0]) == {"id", "title", "url", "pages"}
        assert set(data["workspaces"][0]["pages"][0]) == {"id", "title", "url", "depth", "parentId", "children"}

    @pytest.mark.asyncio
    async def test_navigates_home_when_off_host(self, fast_config):
        app = LoopApp()
        app.driver.location = "https://login.microsoftonline.com/"

        await InventoryRunner(app.driver, fast_config).run()

        assert app.driver.navigations[0] == fast_config.base_url

    @pytest.mark.asyncio
    async def test_no_workspaces_gives_empty_manifest_with_notice(self, fast_config):
        driver = FakeDriver(FakeElement(), location=BASE)

        manifest = await InventoryRunner(driver, fast_config).run()

        assert manifest.total_containers == 0
        assert manifest.total_pages == 0
        assert manifest.notices == [NO_CONTAINERS_NOTICE]

    @pytest.mark.asyncio
    async def test_failed_workspace_does_not_stop_the_pass(self, fast_config):
        """Test that a workspace with no URL and no sidebar entry is recorded as failed."""
        app = LoopApp()
        app.workspace("Alpha", "/ws/alpha", rows=[tree_row("Page", level=1, href="/p/1")])
        app.sidebar.add(FakeElement('[data-testid="workspace-item"]', text="Ghost"))
        app.workspace("Gamma", "/ws/gamma", rows=[tree_row("Other", level=1, href="/p/2")])

        manifest = await InventoryRunner(app.driver, fast_config).run()

        assert [c.title for c in manifest.containers] == ["Alpha", "Ghost", "Gamma"]
        ghost = manifest.containers[1]
        assert ghost.children == ()
        assert "Ghost" in ghost.error
        assert [c.title for c in manifest.failed_containers] == ["Ghost"]
        assert manifest.containers[2].page_count == 1
        assert ghost.to_dict()["pages"] == []

    @pytest.mark.asyncio
    async def test_workspace_timeout_is_recorded(self, fast_config):
        class SlowDriver(FakeDriver):
            async def navigate(self, url, wait_until="domcontentloaded", timeout_ms=120000):
                await asyncio.sleep(1)

        driver = SlowDriver(FakeElement().add(FakeElement(
            '[data-testid="workspace-list"]').add(FakeElement(
                '[data-testid="workspace-item"]', attrs={"aria-label": "Slow", "href": "/ws/slow"}))),
            location=BASE,
        )
        fast_config.container_timeout_s = 0.05

        manifest = await InventoryRunner(driver, fast_config).run()

        assert manifest.containers[0].error.startswith("Timed out")

    @pytest.mark.asyncio
    async def test_no_page_locations_adds_notice(self, fast_config):
        app = LoopApp()
        app.workspace("Alpha", "/ws/alpha", rows=[tree_row("No link", level=1)])

        manifest = await InventoryRunner(app.driver, fast_config).run()

        assert manifest.total_pages == 1
        assert NO_LOCATION_NOTICE in manifest.notices

    @pytest.mark.asyncio
    async def test_records_selector_hits(self, fast_config):
        app = LoopApp()
        app.workspace("Alpha", "/ws/alpha", rows=[tree_row("Page", level=1, href="/p/1")])
        library = SelectorLibrary()

        await InventoryRunner(app.driver, fast_config, library).run()

        assert library.get_stats("workspace_list").last_selector == '[data-testid="workspace-list"]'
        assert library.get_stats("page_item").last_selector == '[role="treeitem"]'


class TestInventoryContainer:
    """Tests for single-workspace capture."""

    @pytest.mark.asyncio
    async def test_duplicate_dom_ids_are_suffixed(self, fast_config):
        app = LoopApp()
        app.workspace("Alpha", "/ws/alpha", rows=[
            tree_row("One", level=1, href="/p/1", **{"data-id": "dup"}),
            tree_row("Two", level=1, href="/p/2", **{"data-id": "dup"}),
            tree_row("Three", level=1, href="/p/3", **{"data-id": "dup"}),
        ])

        manifest = await InventoryRunner(app.driver, fast_config).run()

        ids = [n.id for n in manifest.containers[0].children]
        assert ids == ["dup", "dup_1", "dup_2"]

    @pytest.mark.asyncio
    async def test_navigates_by_sidebar_click_without_url(self, fast_config):
        app = LoopApp()
        item = app.workspace("Alpha", rows=[tree_row("Page", level=1, href="/p/1")])
        runner = InventoryRunner(app.driver, fast_config)

        result = await runner.inventory_container(ContainerEntry(id="alpha_0", title="Alpha"))

        assert item.clicks == 1
        assert result.error is None
        assert [n.title for n in result.children] == ["Page"]

    @pytest.mark.asyncio
    async def test_navigation_error_without_url_or_entry(self, fast_config):
        runner = InventoryRunner(FakeDriver(location=BASE), fast_config)

        with pytest.raises(NavigationError):
            await runner.navigate_to_container(ContainerEntry(id="x_0", title="Missing"))

    @pytest.mark.asyncio
    async def test_location_by_activation(self):
        """Test that rows without a link get the URL the app lands on once opened."""
        config = InventoryConfig(max_passes=3)
        app = LoopApp()

        def go(path):
            def on_click(_):
                app.driver.location = BASE + path
            return on_click

        clicked = tree_row("Clicked", level=1)
        clicked.on_click = go("p/clicked")
        learn = tree_row("Help", level=1)
        learn.on_click = go("learn/help")
        app.workspace("Alpha", "/ws/alpha", rows=[clicked, learn])

        manifest = await InventoryRunner(app.driver, config).run()

        locations = {n.title: n.location_ref for n in manifest.containers[0].children}
        assert locations == {"Clicked": BASE + "p/clicked", "Help": None}

    @pytest.mark.asyncio
    async def test_stale_rows_are_skipped(self, fast_config):
        gone = tree_row("Gone", level=1, href="/p/gone")
        gone.stale = True
        app = LoopApp()
        app.workspace("Alpha", "/ws/alpha", rows=[gone, tree_row("Kept", level=1, href="/p/kept")])

        manifest = await InventoryRunner(app.driver, fast_config).run()

        assert [n.title for n in manifest.containers[0].children] == ["Kept"]

    @pytest.mark.asyncio
    async def test_pages_from_network_when_no_rows(self, fast_config):
        app = LoopApp()
        app.workspace("Alpha", "/ws/alpha", rows=[])
        app.driver.responses = [
            ("https://substrate/pages?ws=alpha", "application/json", {"value": [
                {"title": "From API", "id": "p1", "webUrl": "/p/api"},
                {"title": "Second", "id": "p2"},
            ]}),
        ]

        manifest = await InventoryRunner(app.driver, fast_config).run()

        pages = manifest.containers[0].children
        assert [(n.id, n.title, n.location_ref) for n in pages] == [
            ("p1", "From API", "https://loop.cloud.microsoft/p/api"),
            ("p2", "Second", None),
        ]
        assert all(n.depth == 0 and n.parent_id is None for n in pages)


class TestDegradedRuns:
    """Tests for passes that hit driver failures outside a single workspace."""

    @pytest.mark.asyncio
    async def test_unreachable_home_still_returns_manifest(self, fast_config):
        class UnreachableDriver(FakeDriver):
            async def navigate(self, url, wait_until="domcontentloaded", timeout_ms=120000):
                raise RuntimeError("net::ERR_NAME_NOT_RESOLVED")

        driver = UnreachableDriver(FakeElement(), location="about:blank")

        manifest = await InventoryRunner(driver, fast_config).run()

        assert manifest.total_containers == 0
        assert manifest.total_pages == 0
        assert manifest.notices[0] == (
            f"Could not open {fast_config.base_url}: net::ERR_NAME_NOT_RESOLVED"
        )
        assert NO_CONTAINERS_NOTICE in manifest.notices

    @pytest.mark.asyncio
    async def test_row_kept_when_level_attribute_read_fails(self, fast_config):
        class BrokenLevelDriver(FakeDriver):
            async def read_attribute(self, element, name):
                if name == "aria-level":
                    raise RuntimeError("evaluation failed")
                return await super().read_attribute(element, name)

        app = LoopApp(BrokenLevelDriver)
        app.workspace("Alpha", "/ws/alpha", rows=[tree_row("Page A", level=2, href="/p/a")])

        manifest = await InventoryRunner(app.driver, fast_config).run()

        assert [(n.title, n.depth) for n in manifest.containers[0].children] == [("Page A", 0)]

    @pytest.mark.asyncio
    async def test_activation_survives_outline_rerender(self):
        """Test that every row is found again after a click re-renders the outline."""
        config = InventoryConfig(max_passes=3)
        app = LoopApp()

        def render():
            for old in app.content.descendants():
                old.stale = True
            app.show(row("First", "p/first"), row("Second", "p/second"), row("Second", "p/second-2"))

        def row(title, path):
            element = tree_row(title, level=1)

            def open_page(_):
                app.driver.location = BASE + path
                render()

            element.on_click = open_page
            return element

        app.workspace("Alpha", "/ws/alpha")
        app.driver.routes[BASE + "ws/alpha"] = lambda _: render()

        manifest = await InventoryRunner(app.driver, config).run()

        assert [n.location_ref for n in manifest.containers[0].children] == [
            BASE + "p/first",
            BASE + "p/second",
            BASE + "p/second-2",
        ]
