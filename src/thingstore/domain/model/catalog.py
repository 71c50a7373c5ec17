"""Default schema forest.

An abbreviated list of Schema.org types plus a handful of custom additions.
Multiple-inheritance types (VideoGame is both a Game and a SoftwareApplication)
are not modelled; each type has at most one parent.

Types that should share a tag with their parent declare neither tag nor
collection and roll up automatically.
"""

from __future__ import annotations

from typing import Final

from .schema import SchemaNode, SchemaRegistry

DEFAULT_SCHEMAS: Final[tuple[SchemaNode, ...]] = (
    SchemaNode(name="Thing", tag="thing", collection="things"),
    # creative works
    SchemaNode(name="CreativeWork", parent="Thing", tag="work", collection="works"),
    SchemaNode(name="Article", parent="CreativeWork", tag="article", collection="works"),
    SchemaNode(name="SocialMediaPosting", parent="Article", tag="post", collection="works"),
    SchemaNode(
        name="SocialMediaThread",
        parent="SocialMediaPosting",
        tag="thread",
        collection="works",
        is_custom=True,
    ),
    SchemaNode(
        name="Bookmark", parent="SocialMediaPosting", tag="link", collection="works", is_custom=True
    ),
    SchemaNode(name="BlogPosting", parent="SocialMediaPosting"),
    SchemaNode(name="LiveBlogPosting", parent="BlogPosting"),
    SchemaNode(name="DiscussionForumPosting", parent="SocialMediaPosting"),
    SchemaNode(name="Blog", parent="CreativeWork", tag="blog", collection="works"),
    SchemaNode(name="Book", parent="CreativeWork", tag="book", collection="products"),
    SchemaNode(name="Collection", parent="CreativeWork", tag="collection", collection="works"),
    SchemaNode(name="Comment", parent="CreativeWork", tag="comment", collection="works"),
    SchemaNode(name="Conversation", parent="CreativeWork", tag="chat", collection="works"),
    SchemaNode(name="CreativeWorkSeries", parent="CreativeWork", tag="series", collection="works"),
    SchemaNode(name="Periodical", parent="CreativeWorkSeries", tag="magazine", collection="works"),
    SchemaNode(name="PodcastSeries", parent="CreativeWorkSeries", tag="podcast", collection="works"),
    SchemaNode(name="TVSeries", parent="CreativeWorkSeries", tag="show", collection="works"),
    SchemaNode(name="DefinedTermSet", parent="CreativeWork", tag="taxonomy", collection="works"),
    SchemaNode(name="Episode", parent="CreativeWork", tag="episode", collection="works"),
    SchemaNode(name="Game", parent="CreativeWork", tag="game", collection="products"),
    SchemaNode(name="HowTo", parent="CreativeWork"),
    SchemaNode(name="Recipe", parent="HowTo", tag="recipe", collection="works"),
    SchemaNode(
        name="JournalEntry", parent="CreativeWork", tag="journal", collection="works", is_custom=True
    ),
    SchemaNode(name="MediaObject", parent="CreativeWork", tag="asset", collection="assets"),
    SchemaNode(name="ImageObject", parent="CreativeWork"),
    SchemaNode(name="VideoObject", parent="CreativeWork"),
    SchemaNode(name="AudioObject", parent="CreativeWork"),
    SchemaNode(name="EmailMessage", parent="CreativeWork", tag="email", collection="works"),
    SchemaNode(name="Movie", parent="CreativeWork", tag="movie", collection="products"),
    SchemaNode(name="MusicPlaylist", parent="CreativeWork", tag="playlist", collection="works"),
    SchemaNode(name="MusicAlbum", parent="MusicPlaylist", tag="album", collection="products"),
    SchemaNode(name="MusicRecording", parent="CreativeWork", tag="song", collection="products"),
    SchemaNode(name="Photograph", parent="CreativeWork", tag="photo", collection="works"),
    SchemaNode(name="Play", parent="CreativeWork", tag="play", collection="products"),
    SchemaNode(
        name="Presentation", parent="CreativeWork", tag="talk", collection="works", is_custom=True
    ),
    SchemaNode(name="PublicationIssue", parent="CreativeWork", tag="issue", collection="works"),
    SchemaNode(name="Quotation", parent="CreativeWork", tag="quote", collection="works"),
    SchemaNode(name="Review", parent="CreativeWork", tag="review", collection="works"),
    SchemaNode(name="ShortStory", parent="CreativeWork", tag="story", collection="works"),
    SchemaNode(
        name="SoftwareApplication", parent="CreativeWork", tag="app", collection="products"
    ),
    SchemaNode(name="WebApplication", parent="SoftwareApplication", tag="webapp", collection="works"),
    SchemaNode(name="SoftwareSourceCode", parent="CreativeWork", tag="code", collection="works"),
    SchemaNode(name="VisualArtwork", parent="CreativeWork", tag="art", collection="works"),
    SchemaNode(name="WebSite", parent="CreativeWork", tag="site", collection="works"),
    # events
    SchemaNode(name="Event", parent="Thing", tag="event", collection="events"),
    SchemaNode(name="EventSeries", parent="Event", tag="events", collection="events"),
    SchemaNode(
        name="Engagement", parent="Event", tag="engagement", collection="events", is_custom=True
    ),
    SchemaNode(
        name="PresentationEvent",
        parent="Event",
        tag="performance",
        collection="events",
        is_custom=True,
    ),
    # agents, places, products
    SchemaNode(name="DefinedTerm", parent="Thing", tag="term", collection="terms"),
    SchemaNode(name="Role", parent="Thing", tag="role", collection="things"),
    SchemaNode(name="OrganizationRole", parent="Role"),
    SchemaNode(name="EmployeeRole", parent="OrganizationRole", tag="job", collection="things"),
    SchemaNode(name="Organization", parent="Thing", tag="org", collection="things"),
    SchemaNode(name="Person", parent="Thing", tag="person", collection="things"),
    SchemaNode(name="Place", parent="Thing", tag="place", collection="things"),
    SchemaNode(name="Product", parent="Thing", tag="product", collection="products"),
    SchemaNode(
        name="HardwareDevice", parent="Product", tag="device", collection="products", is_custom=True
    ),
)


def default_registry() -> SchemaRegistry:
    """Build a strict registry over :data:`DEFAULT_SCHEMAS`."""

    return SchemaRegistry(DEFAULT_SCHEMAS, strict=True)
