from sqlmodel import select

from conftest import auth_header
from models.models import Member, Organization, Project, Role


def test_create_organization(client, session, make_user):
    owner = make_user("john@example.com")

    response = client.post(
        "/organizations",
        json={"name": "Acme Inc", "domain": " Acme.COM ", "should_attach_users_by_domain": True},
        headers=auth_header(owner),
    )

    assert response.status_code == 201
    organization = session.get(Organization, response.json()["organization_id"])
    assert organization.slug == "acme-inc"
    assert organization.domain == "acme.com"
    assert organization.should_attach_users_by_domain is True
    assert organization.owner_id == owner.id

    member = session.exec(select(Member).where(Member.organization_id == organization.id)).one()
    assert member.user_id == owner.id
    assert member.role == Role.ADMIN.value


def test_create_organization_with_taken_domain(client, acme):
    response = client.post(
        "/organizations",
        json={"name": "Acme Clone", "domain": "acme.com"},
        headers=acme.header("outsider"),
    )

    assert response.status_code == 400
    assert response.json() == {"message": "Another organization with same domain already exists."}


def test_create_organization_with_taken_slug(client, acme):
    response = client.post("/organizations", json={"name": "ACME inc."}, headers=acme.header("outsider"))

    assert response.status_code == 400
    assert response.json() == {"message": "Another organization with same slug already exists."}


def test_list_organizations_with_role(client, acme, make_organization):
    make_organization(acme.member, name="Side Project", slug="side-project")

    response = client.get("/organizations", headers=acme.header("member"))

    assert response.status_code == 200
    roles = {org["slug"]: org["role"] for org in response.json()["organizations"]}
    assert roles == {"acme-inc": "MEMBER", "side-project": "ADMIN"}


def test_get_organization_and_membership(client, acme):
    response = client.get("/organizations/acme-inc", headers=acme.header("billing"))
    assert response.status_code == 200
    organization = response.json()["organization"]
    assert organization["name"] == "Acme Inc"
    assert organization["owner_id"] == acme.admin.id

    response = client.get("/organizations/acme-inc/membership", headers=acme.header("billing"))
    assert response.status_code == 200
    membership = response.json()["membership"]
    assert membership["role"] == "BILLING"
    assert membership["user_id"] == acme.billing.id
    assert membership["organization_id"] == acme.organization.id


def test_get_organization_requires_membership(client, acme):
    response = client.get("/organizations/acme-inc", headers=acme.header("outsider"))

    assert response.status_code == 401
    assert response.json() == {"message": "You're not a member of this organization."}


def test_unknown_organization_slug(client, acme):
    response = client.get("/organizations/nope", headers=acme.header("admin"))

    assert response.status_code == 401


# ---------------------------
# Update
# ---------------------------
def test_owner_updates_organization(client, session, acme):
    response = client.put(
        "/organizations/acme-inc",
        json={"name": "Acme Corp", "domain": "acme.io", "should_attach_users_by_domain": True},
        headers=acme.header("admin"),
    )

    assert response.status_code == 204
    session.refresh(acme.organization)
    assert acme.organization.name == "Acme Corp"
    assert acme.organization.domain == "acme.io"
    assert acme.organization.slug == "acme-inc"


def test_non_owner_admin_cannot_update_organization(client, acme, make_user, add_member):
    other_admin = make_user("second@acme.com")
    add_member(acme.organization, other_admin, Role.ADMIN)

    response = client.put("/organizations/acme-inc", json={"name": "Hijacked"}, headers=auth_header(other_admin))

    assert response.status_code == 401
    assert response.json() == {"message": "You're not allowed to update this organization."}


def test_member_cannot_update_organization(client, acme):
    response = client.put("/organizations/acme-inc", json={"name": "Nope"}, headers=acme.header("member"))

    assert response.status_code == 401


def test_update_organization_with_domain_of_another(client, acme, make_user, make_organization):
    make_organization(make_user("boss@globex.com"), name="Globex", slug="globex", domain="globex.com")

    response = client.put(
        "/organizations/acme-inc",
        json={"name": "Acme Inc", "domain": "globex.com"},
        headers=acme.header("admin"),
    )

    assert response.status_code == 400
    assert response.json() == {"message": "Another organization with same domain already exists."}


# ---------------------------
# Shutdown
# ---------------------------
def test_admin_shuts_down_organization(client, session, acme, add_project):
    add_project(acme.organization, acme.member, "Website", "website")

    response = client.delete("/organizations/acme-inc", headers=acme.header("admin"))

    assert response.status_code == 204
    assert session.exec(select(Organization)).first() is None
    assert session.exec(select(Member)).first() is None
    assert session.exec(select(Project)).first() is None


def test_member_cannot_shut_down_organization(client, acme):
    response = client.delete("/organizations/acme-inc", headers=acme.header("member"))

    assert response.status_code == 401
    assert response.json() == {"message": "You're not allowed to shutdown this organization."}


# ---------------------------
# Ownership transfer
# ---------------------------
def test_transfer_ownership_promotes_target(client, session, acme):
    response = client.patch(
        "/organizations/acme-inc/owner",
        json={"transfer_to_user_id": acme.member.id},
        headers=acme.header("admin"),
    )

    assert response.status_code == 204
    session.refresh(acme.organization)
    assert acme.organization.owner_id == acme.member.id
    member = session.exec(select(Member).where(Member.user_id == acme.member.id)).one()
    assert member.role == Role.ADMIN.value


def test_transfer_ownership_to_non_member(client, acme):
    response = client.patch(
        "/organizations/acme-inc/owner",
        json={"transfer_to_user_id": acme.outsider.id},
        headers=acme.header("admin"),
    )

    assert response.status_code == 400
    assert response.json() == {"message": "Target user is not a member of this organization."}


def test_only_owner_transfers_ownership(client, acme, make_user, add_member):
    other_admin = make_user("second@acme.com")
    add_member(acme.organization, other_admin, Role.ADMIN)

    response = client.patch(
        "/organizations/acme-inc/owner",
        json={"transfer_to_user_id": other_admin.id},
        headers=auth_header(other_admin),
    )

    assert response.status_code == 401
