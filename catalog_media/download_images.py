"""
Downloads a list of image URLs into a local tree mirroring their remote paths.

``https://host/a/b/c.jpg`` with output root ``R`` is saved as ``R/a/b/c.jpg``.
Items are processed one at a time with a short delay between requests; a
failing item is recorded in the BatchReport and never stops the batch.
"""
import os
import re
import sys
import time
import logging
import concurrent.futures
from dataclasses import dataclass, field
from typing import List, Optional, Sequence
from urllib.parse import urlparse

import requests
import urllib3
from requests.adapters import HTTPAdapter
from tqdm import tqdm
from urllib3.exceptions import InsecureRequestWarning, ReadTimeoutError

import catalog_media.utils.config as constants
from catalog_media.extract_links import read_links
from catalog_media.utils.cli import UsageArgumentParser

if not constants.VERIFY_SSL:
    urllib3.disable_warnings(InsecureRequestWarning)

logging.basicConfig(level=constants.LOG_LEVEL, format=constants.LOG_FORMAT)
logger = logging.getLogger(__name__)

URL_PATH_PATTERN = re.compile(r'https?://[^/]+(/.*)')


class HTTPStatusError(Exception):
    """Non-2xx response for a download request."""

    def __init__(self, status_code: int, url: str):
        super().__init__(f"HTTP {status_code}: {url}")
        self.status_code = status_code
        self.url = url


@dataclass(frozen=True)
class FetchTask:
    url: str
    destination: str


@dataclass
class FetchFailure:
    index: int  # 1-based position in the batch
    url: str
    reason: str
    status_code: Optional[int] = None


@dataclass
class BatchReport:
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    failures: List[FetchFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed == 0

    def add_success(self):
        self.attempted += 1
        self.succeeded += 1

    def add_failure(self, failure: FetchFailure):
        self.attempted += 1
        self.failed += 1
        self.failures.append(failure)


def create_session(pool_size: int = 10) -> requests.Session:
    """Build a requests Session with a pooled adapter for both schemes."""
    session = requests.Session()
    adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size * 2)
    session.mount('http://', adapter)
    session.mount('https://', adapter)
    session.headers.update(constants.HEADERS)
    return session


def extract_path_from_url(url: str) -> str:
    """
    Return the path component of ``url``.
    Falls back to a permissive regex for malformed URLs and finally to
    UNKNOWN_PATH when nothing can be recovered.
    """
    try:
        parsed = urlparse(url)
        if parsed.scheme and parsed.netloc:
            return parsed.path or '/'
    except ValueError:
        pass

    match = URL_PATH_PATTERN.match(url)
    if match:
        return match.group(1)
    return constants.UNKNOWN_PATH


def _safe_segments(path: str) -> List[str]:
    return [s for s in path.split('/') if s not in ('', '.', '..')]


def build_fetch_task(url: str, output_dir: str) -> FetchTask:
    """Pair ``url`` with its destination under ``output_dir``."""
    url_path = extract_path_from_url(url)
    directory, _, basename = url_path.rpartition('/')
    if basename in ('', '.', '..'):
        basename = constants.DEFAULT_FILENAME
    destination = os.path.join(output_dir, *_safe_segments(directory), basename)
    return FetchTask(url=url, destination=destination)


def ensure_parent_dir(file_path: str):
    """Create every missing ancestor directory of ``file_path``."""
    dirname = os.path.dirname(file_path)
    if dirname:
        os.makedirs(dirname, exist_ok=True)


def _remove_partial(file_path: str):
    try:
        os.remove(file_path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove partial file {file_path}: {e}")


def download_file(session: requests.Session, url: str, destination: str,
                  timeout: float = constants.REQUEST_TIMEOUT):
    """
    Stream ``url`` into ``destination``.
    Raises HTTPStatusError for non-2xx responses and requests.exceptions.Timeout
    once the whole transfer exceeds ``timeout`` seconds. A partially written
    file is removed before any error propagates.
    """
    started = time.monotonic()
    response = session.get(url, stream=True, timeout=timeout, verify=constants.VERIFY_SSL)
    try:
        if not 200 <= response.status_code < 300:
            raise HTTPStatusError(response.status_code, url)

        try:
            with open(destination, 'wb') as f:
                for chunk in response.iter_content(chunk_size=constants.CHUNK_SIZE):
                    if time.monotonic() - started > timeout:
                        raise requests.exceptions.Timeout(f"Transfer exceeded {timeout}s: {url}")
                    if chunk:
                        f.write(chunk)
        except requests.exceptions.ConnectionError as e:
            _remove_partial(destination)
            # requests wraps a read timeout during the body stream as ConnectionError
            if e.args and isinstance(e.args[0], ReadTimeoutError):
                raise requests.exceptions.Timeout(f"Read timed out: {url}") from e
            raise
        except Exception:
            _remove_partial(destination)
            raise
    finally:
        response.close()


def _failure_reason(error: Exception) -> str:
    if isinstance(error, requests.exceptions.Timeout):
        return "Timeout"
    return str(error) or type(error).__name__


def fetch_one(session: requests.Session, task: FetchTask, index: int,
              timeout: float = constants.REQUEST_TIMEOUT,
              retries: int = constants.MAX_RETRIES,
              retry_backoff: float = constants.RETRY_BACKOFF) -> Optional[FetchFailure]:
    """Download a single task. Returns None on success, a FetchFailure otherwise."""
    retries = max(0, retries)
    attempt = 0
    while True:
        attempt += 1
        try:
            ensure_parent_dir(task.destination)
            download_file(session, task.url, task.destination, timeout=timeout)
            return None
        except (requests.exceptions.RequestException, HTTPStatusError, OSError) as e:
            if attempt > retries:
                logger.error(f"Error downloading {task.url}: {e}")
                return FetchFailure(
                    index=index,
                    url=task.url,
                    reason=_failure_reason(e),
                    status_code=getattr(e, 'status_code', None),
                )
            logger.info(f"  Retry attempt {attempt}/{retries} for {task.url} ({_failure_reason(e)})")
            time.sleep(retry_backoff * attempt)


def _chunks(items: Sequence, size: int):
    for start in range(0, len(items), size):
        yield start, items[start:start + size]


def download_images(urls: Sequence[str], output_dir: str,
                    session: Optional[requests.Session] = None,
                    timeout: float = constants.REQUEST_TIMEOUT,
                    delay: float = constants.REQUEST_DELAY,
                    retries: int = constants.MAX_RETRIES,
                    retry_backoff: float = constants.RETRY_BACKOFF,
                    concurrent_downloads: int = constants.CONCURRENT,
                    show_progress: bool = False) -> BatchReport:
    """
    Download every URL into ``output_dir``, mirroring remote paths.
    Outcomes are recorded in submission order even when ``concurrent_downloads``
    is greater than one.
    """
    links = [u.strip() for u in urls if u and u.strip()]
    total = len(links)
    report = BatchReport()

    os.makedirs(output_dir, exist_ok=True)
    own_session = session is None
    sess = session or create_session(pool_size=max(10, concurrent_downloads))
    size = max(1, concurrent_downloads)
    pbar = tqdm(total=total, desc="Downloading Images") if show_progress else None

    def _process(index: int, url: str) -> Optional[FetchFailure]:
        task = build_fetch_task(url, output_dir)
        if pbar is None:
            print(f"[{index}/{total}] Downloading: {task.url}")
            print(f"  -> {task.destination}")
        return fetch_one(sess, task, index, timeout=timeout,
                         retries=retries, retry_backoff=retry_backoff)

    try:
        if size == 1:
            for i, url in enumerate(links, start=1):
                _record(report, _process(i, url))
                if pbar is not None:
                    pbar.update(1)
                if delay > 0 and i < total:
                    time.sleep(delay)
        else:
            with concurrent.futures.ThreadPoolExecutor(max_workers=size) as executor:
                for start, chunk in _chunks(links, size):
                    indexes = range(start + 1, start + len(chunk) + 1)
                    # map() yields results in submission order
                    for outcome in executor.map(_process, indexes, chunk):
                        _record(report, outcome)
                        if pbar is not None:
                            pbar.update(1)
                    if delay > 0 and start + len(chunk) < total:
                        time.sleep(delay)
    finally:
        if pbar is not None:
            pbar.close()
        if own_session:
            sess.close()

    return report


def _record(report: BatchReport, outcome: Optional[FetchFailure]):
    if outcome is None:
        report.add_success()
    else:
        report.add_failure(outcome)


def print_summary(report: BatchReport):
    print("\n" + "=" * 60)
    print("Download Complete")
    print("=" * 60)
    print(f"✅ Success: {report.succeeded}/{report.attempted}")
    print(f"❌ Failed: {report.failed}/{report.attempted}")
    print(f"Total processed: {report.attempted}")
    if report.failures:
        print("-" * 60)
        for failure in report.failures:
            print(f"  [{failure.index}] {failure.url}: {failure.reason}")
    print("=" * 60)


def build_parser(prog: str = "download-images") -> UsageArgumentParser:
    parser = UsageArgumentParser(
        prog=prog,
        description="Download image URLs into a directory tree mirroring their remote paths.",
    )
    parser.add_argument("links_file", help="Text file with one image URL per line")
    parser.add_argument("output_dir", help="Directory to save images into")
    add_download_options(parser)
    return parser


def add_download_options(parser):
    parser.add_argument("-t", "--timeout", type=float, default=constants.REQUEST_TIMEOUT,
                        help=f"Per-request timeout in seconds (default: {constants.REQUEST_TIMEOUT:g})")
    parser.add_argument("-d", "--delay", type=int, default=int(constants.REQUEST_DELAY * 1000),
                        help="Delay between requests in milliseconds (default: %(default)s)")
    parser.add_argument("-r", "--retries", type=int, default=constants.MAX_RETRIES,
                        help="Retries per URL after the first attempt (default: %(default)s)")
    parser.add_argument("-c", "--concurrent", type=int, default=constants.CONCURRENT,
                        help="Simultaneous downloads (default: %(default)s)")
    parser.add_argument("--progress", action="store_true",
                        help="Show a progress bar instead of per-item lines")


def run_download(links: Sequence[str], output_dir: str, args) -> BatchReport:
    """Run a batch with options parsed by ``add_download_options`` and print the summary."""
    print(f"Found {len(links)} links to download")
    print("Options:")
    print(f"  Folder: {output_dir}")
    print(f"  Timeout: {args.timeout:g}s")
    print(f"  Delay: {args.delay}ms")
    print(f"  Retries: {args.retries}")
    print(f"  Concurrent downloads: {args.concurrent}")
    print("")

    report = download_images(
        links,
        output_dir,
        timeout=args.timeout,
        delay=args.delay / 1000,
        retries=max(0, args.retries),
        concurrent_downloads=max(1, args.concurrent),
        show_progress=args.progress,
    )
    print_summary(report)
    return report


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if not os.path.isfile(args.links_file):
        print(f"File {args.links_file} not found!", file=sys.stderr)
        return 1

    try:
        links = read_links(args.links_file)
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error reading links file: {e}", file=sys.stderr)
        return 1

    if not links:
        print("No links found to download.")
        return 0

    run_download(links, args.output_dir, args)
    return 0


if __name__ == "__main__":
    sys.exit(main())
