"""UI adapter over a Playwright page, using DOM semantics.

Mapping: ``data-testid`` is the stable tag, ``aria-label`` the accessibility
description, own text (or the value of form fields) the text. Each captured
element is stamped with a node-id attribute so actions can address it.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator as PlaywrightLocator
from playwright.async_api import Page, async_playwright

from nlstep.models.semantic_tree import SemanticNode, SemanticTreeSnapshot

from .ui_adapter import TextReplacementUnsupported

logger = logging.getLogger(__name__)

NODE_ID_ATTRIBUTE = "data-nlstep-node"
LONG_PRESS_MS = 800

_CAPTURE_SCRIPT = """
(attr) => {
    const SKIP = new Set(['SCRIPT', 'STYLE', 'NOSCRIPT', 'TEMPLATE', 'META', 'LINK', 'HEAD']);
    let nextId = 0;
    const ownText = (el) => {
        if (el.tagName === 'INPUT' || el.tagName === 'TEXTAREA' || el.tagName === 'SELECT') {
            return el.value ?? null;
        }
        let text = '';
        for (const child of el.childNodes) {
            if (child.nodeType === Node.TEXT_NODE) text += child.textContent;
        }
        text = text.replace(/\\s+/g, ' ').trim();
        if (!text && el.children.length === 0) {
            text = (el.innerText || '').trim();
        }
        return text || null;
    };
    const walk = (el) => {
        const id = nextId++;
        el.setAttribute(attr, String(id));
        const rect = el.getBoundingClientRect();
        const role = el.getAttribute('role') || el.tagName.toLowerCase();
        const node = {
            id: id,
            role: role.charAt(0).toUpperCase() + role.slice(1),
            tag: el.getAttribute('data-testid') || el.getAttribute('data-test-id') || null,
            text: ownText(el),
            description: el.getAttribute('aria-label') || null,
            bounds: [rect.left, rect.top, rect.right, rect.bottom],
            children: [],
        };
        for (const child of el.children) {
            if (!SKIP.has(child.tagName)) node.children.push(walk(child));
        }
        return node;
    };
    return walk(document.body);
}
"""

_READ_TEXT_SCRIPT = """
(el) => (el.tagName === 'INPUT' || el.tagName === 'TEXTAREA' || el.tagName === 'SELECT')
    ? el.value
    : (el.innerText || el.textContent || '').trim()
"""


class PlaywrightUIAdapter:
    """Implements the UI adapter primitives on a Playwright page."""

    def __init__(self, page: Page, settle_timeout_ms: int = 5000, settle_delay_ms: int = 300):
        self.page = page
        self.settle_timeout_ms = settle_timeout_ms
        self.settle_delay_ms = settle_delay_ms

    def _locate(self, node: SemanticNode) -> PlaywrightLocator:
        return self.page.locator(f'[{NODE_ID_ATTRIBUTE}="{node.node_id}"]')

    async def capture_snapshot(self) -> SemanticTreeSnapshot:
        data = await self.page.evaluate(_CAPTURE_SCRIPT, NODE_ID_ATTRIBUTE)
        snapshot = SemanticTreeSnapshot.from_dict(data)
        logger.debug("Captured snapshot with %d nodes from %s", len(snapshot), self.page.url)
        return snapshot

    async def settle(self) -> None:
        try:
            await self.page.wait_for_load_state("networkidle", timeout=self.settle_timeout_ms)
        except PlaywrightError:
            logger.debug("Network idle timeout, continuing")
        if self.settle_delay_ms:
            await self.page.wait_for_timeout(self.settle_delay_ms)

    async def click(self, node: SemanticNode) -> None:
        await self._locate(node).click()

    async def long_click(self, node: SemanticNode) -> None:
        await self._locate(node).click(delay=LONG_PRESS_MS)

    async def double_click(self, node: SemanticNode) -> None:
        await self._locate(node).dblclick()

    async def replace_text(self, node: SemanticNode, text: str) -> None:
        locator = self._locate(node)
        if not await locator.is_editable():
            raise TextReplacementUnsupported(f"{node.summary()} is not editable")
        await locator.fill(text)

    async def insert_text(self, node: SemanticNode, text: str) -> None:
        locator = self._locate(node)
        await locator.focus()
        await locator.press_sequentially(text)

    async def clear_text(self, node: SemanticNode) -> None:
        await self._locate(node).clear()

    async def scroll_to(self, node: SemanticNode) -> None:
        await self._locate(node).scroll_into_view_if_needed()

    async def is_displayed(self, node: SemanticNode) -> bool:
        return await self._locate(node).is_visible()

    async def read_text(self, node: SemanticNode) -> str:
        return await self._locate(node).evaluate(_READ_TEXT_SCRIPT)


@asynccontextmanager
async def open_page(url: str, headless: bool = True) -> AsyncIterator[Page]:
    """Launch Chromium, open ``url`` and yield the page."""
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=headless)
        try:
            page = await browser.new_page()
            logger.info("Navigating to %s...", url)
            await page.goto(url, wait_until="domcontentloaded")
            try:
                await page.wait_for_load_state("networkidle", timeout=10000)
            except PlaywrightError:
                logger.debug("Network idle timeout, continuing")
            yield page
        finally:
            await browser.close()
