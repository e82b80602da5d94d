"""
Seed Dataset

Deterministic in-memory content for the simulated backend.
Article tags rotate through a fixed sequence instead of being
shuffled, so repeated runs produce identical query results.
"""

from __future__ import annotations
from datetime import date, timedelta
from typing import Optional

from .contracts import (
    User, Article, CommunityPost, Song, Announcement, AiHistoryEntry,
    Category, FriendLink, Danmaku, Comment,
    Role, VipType, CultivationLevel, AnnouncementKind,
)
from .storage import Dataset


USERS = (
    User(
        id="u-admin",
        username="admin",
        name="John Developer",
        avatar="https://ui-avatars.com/api/?name=John+Dev&background=0071e3&color=fff",
        bio="Full-stack developer who likes minimal design and fast code.",
        role=Role.ADMIN,
        vip_type=VipType.PERMANENT,
        level=CultivationLevel.TRIBULATION,
        ai_usage=45,
        points=8888,
        cover_image="https://picsum.photos/seed/cover1/1200/400",
        followers_count=1024,
        following_count=128,
        total_likes=5600,
    ),
    User(
        id="u-1",
        username="alice",
        name="Alice Designer",
        avatar="https://ui-avatars.com/api/?name=Alice+D&background=FF5733&color=fff",
        bio="UI/UX designer focused on user experience.",
        role=Role.VIP,
        vip_type=VipType.MONTHLY,
        level=CultivationLevel.NASCENT_SOUL,
        ai_usage=12,
        points=500,
        followers_count=850,
        following_count=50,
        total_likes=2300,
    ),
    User(
        id="u-2",
        username="bob",
        name="Bob Engineer",
        avatar="https://ui-avatars.com/api/?name=Bob+E&background=33FF57&color=fff",
        bio="Backend architect, Rust enthusiast.",
        role=Role.USER,
        vip_type=VipType.NONE,
        level=CultivationLevel.QI_REFINING,
        ai_usage=5,
        points=100,
        followers_count=120,
        following_count=200,
        total_likes=450,
    ),
)

ARTICLE_TITLES = (
    "UI Design Trends for 2025",
    "Understanding React Server Components",
    "Why TypeScript Is Worth Learning",
    "10 Tips for High-Performance Web Apps",
    "Tailwind CSS Best Practices",
    "WebAssembly: The Next Big Thing in the Browser",
    "Micro-Frontend Architecture in Practice",
    "What's New in Node.js 22",
    "CSS Grid vs Flexbox",
    "How to Become a Good Tech Lead",
)

ARTICLE_CATEGORIES = ("Tech", "Design", "Life")

# Some tags carry the leading marker, some don't; queries must match both
TAG_ROTATION = ("Frontend", "#React", "Design", "#Performance")

ARTICLE_SUMMARY = (
    "A look at the key technologies and design ideas in modern web "
    "development, for front-end developers of every level."
)

CONTENT_TEMPLATE = """
## The future of front-end development

Front-end development has grown explosively over the past few years.
From jQuery to React to Server Components, the stack keeps moving.

### Core trends
1. **Performance first**: Core Web Vitals are now an SEO signal.
2. **Edge computing**: logic moves closer to the user.
3. **AI-assisted coding**: assistants have changed our workflow.

> "Good design is as little design as possible." - Dieter Rams
"""

SONGS = (
    Song("1", "Midnight City", "M83", "https://picsum.photos/seed/m83/300/300", 243,
         ("[00:10.00]Waiting in a car", "[00:15.00]Waiting for a ride in the dark")),
    Song("2", "Instant Crush", "Daft Punk", "https://picsum.photos/seed/daft/300/300", 337,
         ("[00:20.00]I didn't want to be the one to forget",)),
    Song("3", "The Less I Know", "Tame Impala", "https://picsum.photos/seed/tame/300/300", 216,
         ("[00:05.00]Someone said they left together",)),
    Song("4", "Blinding Lights", "The Weeknd", "https://picsum.photos/seed/weeknd/300/300", 200,
         ("[00:10.00]I've been tryna call",)),
    Song("5", "Levitating", "Dua Lipa", "https://picsum.photos/seed/dua/300/300", 203,
         ("[00:08.00]If you wanna run away with me",)),
)

ANNOUNCEMENTS = (
    Announcement(1, "iBlog V2.0 released",
                 "New UI, faster loading, and the AI assistant is live!",
                 "# iBlog V2.0\n\n### New\n- Frosted glass UI\n- AI assistant\n- Music player",
                 AnnouncementKind.INFO, "2025-01-01", "System Administrator"),
    Announcement(2, "Scheduled maintenance",
                 "Routine maintenance early Sunday morning, about 2 hours.",
                 "We are upgrading the servers to keep the service stable...",
                 AnnouncementKind.WARNING, "2025-01-15", "Operations"),
    Announcement(3, "Community guidelines updated",
                 "Please read the latest code of conduct.",
                 "We have updated the rules to keep the community friendly...",
                 AnnouncementKind.SUCCESS, "2025-01-20", "Community Team"),
)

AI_HISTORY = (
    AiHistoryEntry("h-1", "Explain quantum computing", "Today 10:30"),
    AiHistoryEntry("h-2", "React useEffect best practices", "Yesterday 15:45"),
    AiHistoryEntry("h-3", "Write a Python crawler", "2025-01-20"),
    AiHistoryEntry("h-4", "Translate a tech article", "2025-01-18"),
)

HOT_SEARCHES = (
    "React 19", "Tailwind CSS", "Apple design", "TypeScript",
    "WebAssembly", "AI coding", "Next.js",
)

POST_CONTENTS = (
    "Just shipped a new version of the blog, take a look! #Showcase",
    "Anyone running Deno in production? How is it? #TechTalk",
    "Great weather today, perfect for writing code.",
    "Any VS Code theme recommendations?",
    "Maintaining a design system is hard... #DesignerLife",
    "Finally fixed that bug, feels great!",
    "The React docs were updated, worth a read.",
    "Going hiking this weekend to unwind.",
)

CATEGORIES = (
    Category("tech", "Tech", "Engineering notes and deep dives", "#0071e3",
             "https://picsum.photos/seed/cat-tech/400/200"),
    Category("design", "Design", "Interfaces, type and color", "#ff5733",
             "https://picsum.photos/seed/cat-design/400/200"),
    Category("life", "Life", "Everything else", "#33aa57",
             "https://picsum.photos/seed/cat-life/400/200"),
)

FRIEND_LINKS = (
    FriendLink("React", "https://react.dev", "https://picsum.photos/seed/react/64/64",
               "The library for web and native user interfaces"),
    FriendLink("MDN", "https://developer.mozilla.org", "https://picsum.photos/seed/mdn/64/64",
               "Resources for developers, by developers"),
)

DANMAKU = (
    Danmaku("d-1", "First!", "#ffffff"),
    Danmaku("d-2", "Great post", "#ffd700"),
    Danmaku("d-3", "Learned a lot", "#87cefa"),
)


def build_articles(count: int = 10, today: Optional[date] = None):
    today = today or date.today()
    articles = []
    for i in range(count):
        author = USERS[i % len(USERS)]
        articles.append(Article(
            id=f"art-{i + 1}",
            title=ARTICLE_TITLES[i % len(ARTICLE_TITLES)],
            summary=ARTICLE_SUMMARY,
            content=CONTENT_TEMPLATE,
            category=ARTICLE_CATEGORIES[i % len(ARTICLE_CATEGORIES)],
            date=(today - timedelta(days=i)).isoformat(),
            cover=f"https://picsum.photos/seed/article{i}/800/600",
            views=500 + (i * 937) % 10000,
            likes=50 + (i * 97) % 1000,
            tags=(TAG_ROTATION[i % 4], TAG_ROTATION[(i + 1) % 4]),
            author_id=author.id,
            author_name=author.name,
            author_avatar=author.avatar,
            author_level=author.level,
        ))
    return tuple(articles)


def build_comments():
    return (
        Comment("c-1", USERS[1], "Great write-up, very inspiring.", "2 hours ago", likes=5,
                replies=(Comment("c-1-1", USERS[0], "Thanks!", "1 hour ago", likes=1),)),
        Comment("c-2", USERS[2], "Interesting, but Server Components still have a long way to go.",
                "5 hours ago", likes=12),
    )


def build_posts():
    return tuple(
        CommunityPost(
            id=f"post-{i + 1}",
            author=USERS[i % len(USERS)],
            content=content,
            likes=(i * 7) % 50,
            comments=(i * 3) % 10,
            time_ago=f"{i * 2 + 1} hours ago",
        )
        for i, content in enumerate(POST_CONTENTS)
    )


def default_dataset(today: Optional[date] = None) -> Dataset:
    """The dataset the application boots with."""
    return Dataset(
        articles=build_articles(today=today),
        users=USERS,
        posts=build_posts(),
        songs=SONGS,
        announcements=ANNOUNCEMENTS,
        ai_history=AI_HISTORY,
        comments=build_comments(),
        hot_searches=HOT_SEARCHES,
        tags=tuple(dict.fromkeys(t.lstrip("#") for t in TAG_ROTATION)),
        categories=CATEGORIES,
        friend_links=FRIEND_LINKS,
        danmaku=DANMAKU,
        favorites=(("u-admin", ("art-2", "art-5")), ("u-1", ("art-1",))),
    )
