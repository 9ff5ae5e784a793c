from pagebook.src.objects.content import Content
from pagebook.src.objects.pages import Page
from pagebook.src.objects.permissions import PermissionRule
from pagebook.src.objects.revisions import Revision


async def create_page(client, title: str, body: str = "", **fields):
    payload = {"title": title, "body": body, **fields}
    resp = await client.post("/api/pages", json=payload)
    resp.raise_for_status()
    return resp.json()


def make_revision(title: str = "Page", body: str = "", read: str = "anyone", write: str = "anyone", **extra):
    return Revision(
        content=Content(title=title, body=body),
        permissions=PermissionRule(read=read, write=write),
        **extra,
    )


def make_page(title: str = "Page", bodies: tuple[str, ...] = ("",), **rule) -> Page:
    page = Page()
    for body in bodies:
        page.add_revision(make_revision(title, body, **rule))
    return page
