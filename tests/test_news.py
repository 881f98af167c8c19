#!/usr/bin/env python3
"""
Tests for news entry extraction and linking
"""
from conftest import PAGE_URL
from scraper.news import NewsEntry, extract_news
from scraper.resolver import resolve_news

NEWS_PAGE = """
<body>
  <a href="/news/grava-launch-2024/"><img src="/uploads/launch.jpg">Grava launched</a>
  <article>
    <img src="/uploads/award-photo.jpg">
    <a href="https://press.example.org/article/best-project-award.html">Best project award</a>
  </article>
  <a href="/news/grava-launch-2024/#comments">Comments</a>
  <a href="/contact">Contact</a>
  <img class="news-thumb" src="/uploads/press-cutting.png" alt="Press cutting">
</body>
"""


def test_extract_news_entries(soup_of):
    entries = extract_news(soup_of(NEWS_PAGE), PAGE_URL)

    assert [e.id for e in entries] == ['grava_launch_2024', 'best_project_award', 'press_cutting']
    launch, award, cutting = entries
    assert launch.url == 'https://example.com/news/grava-launch-2024/'
    assert launch.title == 'Grava launched'
    assert launch.image_url == 'https://example.com/uploads/launch.jpg'
    assert award.image_url == 'https://example.com/uploads/award-photo.jpg'
    assert cutting.url is None
    assert cutting.title == 'Press cutting'


def test_page_without_news(soup_of):
    assert extract_news(soup_of('<body><a href="/about">About</a></body>'), PAGE_URL) == []


def test_resolve_news_by_url_then_name():
    entries = [
        NewsEntry(id='grava_launch_2024', image_url='https://example.com/uploads/launch.jpg'),
        NewsEntry(id='best_project_award', title='Best project award'),
        NewsEntry(id='unrelated'),
    ]
    url_to_path = {'https://example.com/uploads/launch.jpg': 'news/aaaaaaaaaaaa-launch.jpg'}
    news_files = ['news/aaaaaaaaaaaa-launch.jpg', 'news/bbbbbbbbbbbb-best_project_award.png']

    resolve_news(entries, url_to_path, news_files)

    assert entries[0].path == 'news/aaaaaaaaaaaa-launch.jpg'
    assert entries[1].path == 'news/bbbbbbbbbbbb-best_project_award.png'
    assert entries[2].path is None
