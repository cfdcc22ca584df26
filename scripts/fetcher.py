"""GitHub API interactions for fetching repository issues."""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed

import requests

from models import FetchError

log = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"

# Defaults (can be overridden via config)
DEFAULT_TIMEOUT = 30
DEFAULT_MAX_RETRIES = 3
DEFAULT_RATE_LIMIT_DELAY = 0.1
DEFAULT_MAX_WORKERS = 3
PER_PAGE = 100
MAX_RATE_LIMIT_WAIT = 300  # seconds
RATE_LIMIT_STATUSES = (403, 429)


def get_headers():
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        headers["Authorization"] = f"Bearer {token}"
    else:
        log.warning("GITHUB_TOKEN not set, using unauthenticated requests")
    return headers


def handle_rate_limit(response, max_retries=DEFAULT_MAX_RETRIES):
    """Check rate limit headers and wait if necessary. Returns True if should retry."""
    retry_after = response.headers.get("Retry-After")
    remaining = response.headers.get("X-RateLimit-Remaining")
    reset_time = response.headers.get("X-RateLimit-Reset")

    # Secondary rate limit (usually 429) tells us how long to wait
    if retry_after is not None and retry_after.isdigit():
        wait_seconds = int(retry_after)
        if wait_seconds < MAX_RATE_LIMIT_WAIT:
            log.warning(f"Secondary rate limit hit, waiting {wait_seconds}s")
            time.sleep(wait_seconds)
            return True
        log.error(f"Rate limit retry delay too long ({wait_seconds}s)")
        return False

    if remaining is not None and int(remaining) == 0:
        if reset_time:
            wait_seconds = int(reset_time) - int(time.time()) + 1
            if wait_seconds > 0 and wait_seconds < MAX_RATE_LIMIT_WAIT:
                log.warning(f"Rate limit hit, waiting {wait_seconds}s")
                time.sleep(wait_seconds)
                return True
        log.error("Rate limit exceeded, no reset time available")
    return False


def request_with_retry(url, max_retries=DEFAULT_MAX_RETRIES, timeout=DEFAULT_TIMEOUT, **kwargs):
    """GET with exponential backoff retry."""
    last_error = None
    for attempt in range(max_retries):
        try:
            resp = requests.get(url, timeout=timeout, **kwargs)

            if resp.status_code in RATE_LIMIT_STATUSES and handle_rate_limit(resp, max_retries):
                continue

            return resp
        except requests.exceptions.Timeout as e:
            last_error = e
            log.warning(f"Request timeout (attempt {attempt + 1}/{max_retries}): {url}")
        except requests.exceptions.RequestException as e:
            last_error = e
            log.warning(f"Request error (attempt {attempt + 1}/{max_retries}): {e}")

        # Exponential backoff: 1s, 2s, 4s
        if attempt < max_retries - 1:
            delay = 2 ** attempt
            log.debug(f"Retrying in {delay}s...")
            time.sleep(delay)

    raise last_error or requests.exceptions.RequestException(f"Failed after {max_retries} retries")


def fetch_issues(repository: str, config: dict = None) -> list[dict]:
    """Fetch raw issues of one "owner/repository", following pagination.

    Raises FetchError when the repository can't be read.
    """
    headers = get_headers()

    cfg = config or {}
    api_cfg = cfg.get("api", {})
    issues_cfg = cfg.get("issues", {})
    base_url = api_cfg.get("base_url", GITHUB_API)
    timeout = api_cfg.get("request_timeout", DEFAULT_TIMEOUT)
    max_retries = api_cfg.get("max_retries", DEFAULT_MAX_RETRIES)
    rate_delay = api_cfg.get("rate_limit_delay", DEFAULT_RATE_LIMIT_DELAY)
    max_pages = api_cfg.get("max_pages")
    include_prs = issues_cfg.get("include_pull_requests", False)

    url = f"{base_url}/repos/{repository}/issues"
    params = {
        "state": issues_cfg.get("state", "open"),
        "per_page": PER_PAGE,
    }

    issues = []
    page = 1
    while True:
        params["page"] = page
        try:
            resp = request_with_retry(
                url, max_retries=max_retries, timeout=timeout,
                headers=headers, params=params
            )
        except requests.exceptions.RequestException as e:
            raise FetchError(repository, f"request failed: {e}") from e

        if resp.status_code == 404:
            raise FetchError(repository, "repository not found or not accessible")
        if not resp.ok:
            raise FetchError(repository, f"HTTP {resp.status_code}")

        try:
            items = resp.json()
        except ValueError as e:
            raise FetchError(repository, f"invalid JSON response: {e}") from e
        if not isinstance(items, list):
            raise FetchError(repository, "unexpected response payload")

        if not items:
            break

        for item in items:
            # The issues endpoint also returns pull requests
            if not include_prs and isinstance(item, dict) and "pull_request" in item:
                continue
            issues.append(item)

        if len(items) < PER_PAGE:
            break
        if max_pages and page >= max_pages:
            log.info(f"{repository}: stopping at page limit ({max_pages})")
            break

        page += 1
        time.sleep(rate_delay)

    return issues


def fetch_all_issues(
    repositories: list[str], config: dict = None
) -> tuple[dict[str, list[dict]], list[str]]:
    """Fetch issues for all repositories in parallel.

    Returns the raw issues of every repository that could be fetched, keyed
    in request order, plus the list of repositories that failed.
    """
    cfg = config or {}
    api_cfg = cfg.get("api", {})
    max_workers = api_cfg.get("max_workers", DEFAULT_MAX_WORKERS)

    fetched = {}
    failed_repos = []

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            executor.submit(fetch_issues, repo, config): repo
            for repo in repositories
        }

        for future in as_completed(futures):
            repo = futures[future]
            try:
                fetched[repo] = future.result()
                log.info(f"Fetched {len(fetched[repo])} issues: {repo}")
            except Exception as e:
                log.error(f"Error fetching {repo}: {e}")
                failed_repos.append(repo)

    if failed_repos:
        log.warning(f"Failed to fetch {len(failed_repos)} repos: {', '.join(failed_repos)}")

    results = {repo: fetched[repo] for repo in repositories if repo in fetched}
    failed = [repo for repo in repositories if repo in failed_repos]
    return results, failed
