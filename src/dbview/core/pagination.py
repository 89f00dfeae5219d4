def loaded_window(total: int, page: int, page_size: int) -> int:
    """Number of items visible after `page` pages have been loaded.

    Pages accumulate: page 2 shows the items of page 1 followed by the next page_size items.
    """
    return min(total, max(page, 1) * page_size)
