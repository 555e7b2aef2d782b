'''
Read-only access to R package datasets through the Rdatasets CSV mirror.

The lab chapters use datasets bundled with R packages (``datasets``,
``MARSS``).  Rdatasets republishes them as CSV files at
``{BASE_URL}/csv/{package}/{item}.csv``; downloads are cached on disk with
a time-to-live.
'''

from __future__ import annotations

import io
import logging
import os
import time

import polars as pl
import requests

from .config import CACHE_DIR

logger = logging.getLogger(__name__)

_USER_AGENT = (
    'atsa-bayes/0.1.0 '
    '(Python) '
    'requests/{req_version}'
).format(req_version=requests.__version__)


class RDatasetsClient:
    '''
    HTTP client for the Rdatasets CSV mirror.

    Parameters
    ----------
    cache_dir : str
        Local directory for cached downloads.
    cache_ttl : int
        Cache time-to-live in seconds. Defaults to 30 days; the
        datasets are static.
    '''

    BASE_URL = 'https://vincentarelbundock.github.io/Rdatasets'

    def __init__(
        self,
        cache_dir: str | os.PathLike = CACHE_DIR,
        cache_ttl: int = 30 * 86_400,
    ) -> None:
        self.cache_dir = str(cache_dir)
        self.cache_ttl = cache_ttl
        self.session = requests.Session()
        self.session.headers['User-Agent'] = _USER_AGENT

    def url(self, package: str, item: str) -> str:
        return f'{self.BASE_URL}/csv/{package}/{item}.csv'

    def load(self, package: str, item: str) -> pl.DataFrame:
        '''
        Download (or read from cache) one dataset.

        Parameters
        ----------
        package : str
            R package name (e.g., ``'datasets'``).
        item : str
            Dataset name (e.g., ``'airquality'``).

        Returns
        -------
        pl.DataFrame
            The dataset, without the ``rownames`` column Rdatasets adds.
            ``NA`` cells become nulls.
        '''
        text = self._fetch(self.url(package, item), f'{package}__{item}.csv')
        return self._parse_csv(text)

    # ------------------------------------------------------------------
    # Internal: caching
    # ------------------------------------------------------------------

    def _cache_path(self, filename: str) -> str:
        '''Return the local cache file path for a given filename.'''
        safe_name = filename.replace('/', '_').replace('\\', '_')
        return os.path.join(self.cache_dir, safe_name)

    def _is_cache_valid(self, path: str) -> bool:
        '''Check whether a cached file exists and is within TTL.'''
        if not os.path.exists(path):
            return False
        age = time.time() - os.path.getmtime(path)
        return age < self.cache_ttl

    def _fetch(self, url: str, filename: str) -> str:
        cache_path = self._cache_path(filename)

        if self._is_cache_valid(cache_path):
            with open(cache_path, 'r', encoding='utf-8') as fh:
                return fh.read()

        logger.info(f'Downloading {url}')
        response = self.session.get(url, timeout=60)
        response.raise_for_status()
        text = response.text
        os.makedirs(self.cache_dir, exist_ok=True)
        with open(cache_path, 'w', encoding='utf-8') as fh:
            fh.write(text)
        return text

    @staticmethod
    def _parse_csv(text: str) -> pl.DataFrame:
        '''Parse Rdatasets CSV text; drop the leading row-name column.'''
        df = pl.read_csv(io.StringIO(text), null_values=['NA'], infer_schema_length=None)
        first = df.columns[0] if df.columns else None
        if first in ('rownames', ''):
            df = df.drop(first)
        return df


def load_dataset(package: str, item: str, client: RDatasetsClient | None = None) -> pl.DataFrame:
    '''Convenience wrapper around :meth:`RDatasetsClient.load`.'''
    if client is None:
        client = RDatasetsClient()
    return client.load(package, item)
