"""Terminal browser for Mastodon timelines built on pagedcontent."""
