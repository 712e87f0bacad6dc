from .google import GoogleNewsFeed
from .prtimes import PRTimesFeed
from .gnews import GNewsFeed
from .newsapi import NewsApiFeed

from .base import BaseFeed, MeteredFeed, RssFeed

__all__ = ["GoogleNewsFeed", "PRTimesFeed", "GNewsFeed", "NewsApiFeed", "BaseFeed", "MeteredFeed", "RssFeed"]
