from meetingai.extensions import db
from meetingai.models import MeetingComment


def selection(**overrides):
    sel = {"start": 10, "end": 24, "text": "budget numbers", "contextBefore": "I have the ",
           "contextAfter": " ready", "paragraphId": "p-1", "speakerName": "Speaker B"}
    sel.update(overrides)
    return sel


def test_create_and_list(client, meeting):
    r = client.post(f"/meetings/{meeting['id']}/comments", json={"text": "Need Q3 too", "selection": selection()})
    assert r.status_code == 201
    comment = r.get_json()
    assert comment["selection_text"] == "budget numbers"
    assert comment["paragraph_id"] == "p-1"
    assert comment["user_name"] == "Owner"
    assert comment["user_color"].startswith("#")

    reply = client.post(f"/meetings/{meeting['id']}/comments",
                        json={"text": "Added", "selection": selection(), "parentId": comment["id"]})
    assert reply.status_code == 201

    listed = client.get(f"/meetings/{meeting['id']}/comments").get_json()["comments"]
    assert [c["text"] for c in listed] == ["Need Q3 too", "Added"]
    assert listed[1]["parent_id"] == comment["id"]


def test_comment_validation(client, meeting):
    url = f"/meetings/{meeting['id']}/comments"
    assert client.post(url, json={"text": "", "selection": selection()}).status_code == 400
    assert client.post(url, json={"text": "x" * 1001, "selection": selection()}).status_code == 400
    r = client.post(url, json={"text": "backwards", "selection": selection(start=30, end=5)})
    assert r.status_code == 400
    assert r.get_json()["code"] == "VALIDATION_ERROR"
    r = client.post(url, json={"text": "orphan", "selection": selection(), "parentId": "nope"})
    assert r.status_code == 404


def test_only_author_can_edit_or_delete(client, other_client, meeting):
    comment = client.post(f"/meetings/{meeting['id']}/comments",
                          json={"text": "Original", "selection": selection()}).get_json()
    url = f"/meetings/{meeting['id']}/comments/{comment['id']}"

    r = other_client.patch(url, json={"text": "Hijacked"})
    assert r.status_code == 403
    assert r.get_json()["code"] == "FORBIDDEN"
    assert other_client.delete(url).status_code == 403

    r = client.patch(url, json={"text": "Edited"})
    assert r.status_code == 200
    assert r.get_json()["text"] == "Edited"

    assert client.delete(url).get_json() == {"success": True}
    assert db.session.get(MeetingComment, comment["id"]) is None
    assert client.patch(url, json={"text": "again"}).status_code == 404


def test_comments_are_private_to_meeting_owner(other_client, meeting):
    assert other_client.get(f"/meetings/{meeting['id']}/comments").status_code == 404
