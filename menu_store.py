"""
menu_store.py - Fetch, decode and cache the weekly menu document

Sync lifecycle:
    NO_DATA -> SYNCING -> READY -> (READY | STALE on error)

The store hands out a fully decoded MenuDocument or nothing at all.
"""

import json
import os
import threading
import time
from enum import Enum
from typing import Optional

import requests

import config
from menu_document import MenuDocument, parse_menu_document


class SyncState(str, Enum):
    NO_DATA = "no_data"
    SYNCING = "syncing"
    READY = "ready"
    STALE = "stale"


class MenuStoreError(Exception):
    """Base class for menu transport and decode failures"""


class MenuFetchError(MenuStoreError):
    """The menu could not be downloaded"""


class MenuDecodeError(MenuStoreError):
    """The download was not a valid menu document"""


class MenuStore:
    """
    Owns the current menu document and its offline cache.

    Safe to share between the web handlers and the background scheduler.
    """

    def __init__(
        self,
        url: str = config.MENU_URL,
        cache_path: Optional[str] = config.MENU_CACHE_PATH,
        timeout: int = config.FETCH_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.cache_path = cache_path
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': 'WhatsIn/1.0 (+menu sync)',
            'Accept': 'application/json, text/plain, */*',
            'Cache-Control': 'no-cache',
        })

        self._lock = threading.Lock()
        self._refresh_lock = threading.Lock()
        self._document: Optional[MenuDocument] = None
        self._state = SyncState.NO_DATA
        self.last_synced = None
        self.last_error = None

    @property
    def document(self) -> Optional[MenuDocument]:
        with self._lock:
            return self._document

    @property
    def state(self) -> SyncState:
        with self._lock:
            return self._state

    def snapshot(self):
        """(state, document) read together"""
        with self._lock:
            return self._state, self._document

    def load_cache(self) -> bool:
        """
        Load the cached copy from disk, if there is one

        Returns:
            True when a cached document was loaded
        """
        if not self.cache_path or not os.path.exists(self.cache_path):
            print("ℹ️  No cached menu found")
            return False

        try:
            with open(self.cache_path, 'r') as f:
                document = parse_menu_document(json.load(f))
        except (OSError, ValueError) as e:
            print(f"⚠️ Ignoring unreadable menu cache {self.cache_path}: {e}")
            return False

        with self._lock:
            self._document = document
            self._state = SyncState.READY
        print(f"✅ Loaded cached menu (week of {document.week_start_text or 'unknown'})")
        return True

    def refresh(self) -> MenuDocument:
        """
        Download and decode a fresh menu, then replace the current one

        Raises:
            MenuFetchError: network or HTTP failure
            MenuDecodeError: response isn't a menu document
        """
        with self._refresh_lock:
            with self._lock:
                if self._document is None:
                    self._state = SyncState.SYNCING

            try:
                text = self._fetch_text()
                document = self._decode(text)
            except MenuStoreError as e:
                with self._lock:
                    self._state = SyncState.STALE if self._document is not None else SyncState.NO_DATA
                    self.last_error = str(e)
                print(f"❌ Menu refresh failed: {e}")
                raise

            self._save_cache(text)
            with self._lock:
                self._document = document
                self._state = SyncState.READY
                self.last_synced = config.now()
                self.last_error = None

            print(f"✅ Menu synced: {len(document.days())} days, week of {document.week_start_text or 'unknown'}")
            return document

    def _fetch_text(self) -> str:
        # Cache-busting query, the upstream host caches aggressively
        params = {'t': int(time.time())}
        response = None
        try:
            response = self.session.get(self.url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            resp = getattr(e, 'response', None) or response
            if resp is not None:
                print(f"   Status: {getattr(resp, 'status_code', 'N/A')}, Snippet: {getattr(resp, 'text', '')[:300]!r}")
            raise MenuFetchError(f"Error fetching {self.url}: {e}") from e
        return response.text

    def _decode(self, text) -> MenuDocument:
        try:
            return parse_menu_document(json.loads(text))
        except ValueError as e:
            print(f"   Snippet: {text[:300]!r}")
            raise MenuDecodeError(f"Invalid menu document from {self.url}: {e}") from e

    def _save_cache(self, text) -> None:
        if not self.cache_path:
            return
        tmp_path = f"{self.cache_path}.tmp"
        try:
            with open(tmp_path, 'w') as f:
                f.write(text)
            os.replace(tmp_path, self.cache_path)
        except OSError as e:
            print(f"⚠️ Could not write menu cache {self.cache_path}: {e}")
