"""
End-to-end tests for the GraphQL endpoint.

Tests cover:
- Anonymous queries and rejected anonymous mutations
- signup / login and Bearer authentication
- Error codes in ``extensions``
- Relationship fields and counts after enrollment and deletion
"""

import pytest
from fastapi.testclient import TestClient

from academic_records_api.app.main import create_app

ADD_STUDENT = """
mutation ($name: String!, $email: String!, $age: Int!, $major: String) {
  addStudent(name: $name, email: $email, age: $age, major: $major) { id name courses { id } coursesCount }
}
"""

ADD_COURSE = """
mutation ($title: String!, $code: String!, $credits: Int!, $instructor: String!) {
  addCourse(title: $title, code: $code, credits: $credits, instructor: $instructor) { id code }
}
"""

ENROLL = """
mutation ($studentId: ID!, $courseId: ID!) {
  enrollStudent(studentId: $studentId, courseId: $courseId) { id courses { code } coursesCount }
}
"""


@pytest.fixture
def client(store):
    with TestClient(create_app(store)) as client:
        yield client


def execute(client, query, variables=None, token=None):
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    response = client.post("/graphql", json={"query": query, "variables": variables or {}}, headers=headers)
    assert response.status_code == 200
    return response.json()


def error_code(body):
    return body["errors"][0]["extensions"]["code"]


@pytest.fixture
def token(client):
    body = execute(
        client,
        'mutation { signup(email: "registrar@example.com", password: "s3cret") { token user { email } } }',
    )
    assert body["data"]["signup"]["user"]["email"] == "registrar@example.com"
    return body["data"]["signup"]["token"]


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


class TestAuthentication:
    def test_queries_are_public(self, client):
        body = execute(client, "{ getAllStudents { id } getAllCourses { id } }")
        assert body["data"] == {"getAllStudents": [], "getAllCourses": []}

    def test_anonymous_mutation_is_rejected(self, client):
        body = execute(client, ADD_STUDENT, {"name": "Ada", "email": "ada@x.com", "age": 22})
        assert error_code(body) == "UNAUTHENTICATED"
        assert body["errors"][0]["message"] == "UNAUTHENTICATED"
        assert execute(client, "{ getAllStudents { id } }")["data"]["getAllStudents"] == []

    def test_invalid_token_is_anonymous(self, client):
        body = execute(client, ADD_STUDENT, {"name": "Ada", "email": "ada@x.com", "age": 22}, token="bogus")
        assert error_code(body) == "UNAUTHENTICATED"

    def test_login(self, client, token):
        body = execute(
            client,
            'mutation { login(email: "registrar@example.com", password: "s3cret") { token user { id email } } }',
        )
        assert body["data"]["login"]["token"]

    def test_login_with_wrong_password(self, client, token):
        body = execute(
            client,
            'mutation { login(email: "registrar@example.com", password: "nope") { token } }',
        )
        assert error_code(body) == "UNAUTHENTICATED"
        assert body["errors"][0]["message"] == "Invalid credentials"

    def test_duplicate_signup(self, client, token):
        body = execute(
            client,
            'mutation { signup(email: "registrar@example.com", password: "again") { token } }',
        )
        assert error_code(body) == "BAD_USER_INPUT"


class TestStudentsAndCourses:
    def test_add_student_with_token(self, client, token):
        body = execute(client, ADD_STUDENT, {"name": "Ada", "email": "ada@x.com", "age": 22}, token=token)
        student = body["data"]["addStudent"]
        assert student["name"] == "Ada"
        assert student["courses"] == []
        assert student["coursesCount"] == 0

    def test_invalid_email(self, client, token):
        body = execute(client, ADD_STUDENT, {"name": "Ada", "email": "nope", "age": 22}, token=token)
        assert error_code(body) == "BAD_USER_INPUT"
        assert "Must use a valid email address" in body["errors"][0]["message"]

    def test_update_unknown_student(self, client, token):
        body = execute(
            client,
            'mutation { updateStudent(id: "missing", input: {age: 30}) { id } }',
            token=token,
        )
        assert error_code(body) == "NOT_FOUND"

    def test_update_clears_major_with_explicit_null(self, client, token):
        student_id = execute(
            client, ADD_STUDENT, {"name": "Ada", "email": "ada@x.com", "age": 22, "major": "Math"}, token=token
        )["data"]["addStudent"]["id"]

        body = execute(
            client,
            "mutation ($id: ID!) { updateStudent(id: $id, input: {age: 23}) { age major } }",
            {"id": student_id},
            token=token,
        )
        assert body["data"]["updateStudent"] == {"age": 23, "major": "Math"}

        body = execute(
            client,
            "mutation ($id: ID!) { updateStudent(id: $id, input: {major: null}) { age major } }",
            {"id": student_id},
            token=token,
        )
        assert body["data"]["updateStudent"] == {"age": 23, "major": None}

    def test_update_rejects_null_name(self, client, token):
        student_id = execute(
            client, ADD_STUDENT, {"name": "Ada", "email": "ada@x.com", "age": 22}, token=token
        )["data"]["addStudent"]["id"]
        body = execute(
            client,
            "mutation ($id: ID!) { updateStudent(id: $id, input: {name: null}) { name } }",
            {"id": student_id},
            token=token,
        )
        assert error_code(body) == "BAD_USER_INPUT"

    def test_get_unknown_ids_return_null(self, client):
        body = execute(client, '{ getStudent(id: "missing") { id } getCourse(id: "missing") { id } }')
        assert body["data"] == {"getStudent": None, "getCourse": None}

    def test_filter_and_options(self, client, token):
        for name, email, age in (("Ada", "ada@x.com", 22), ("Alan", "alan@x.com", 25), ("Grace", "grace@x.com", 30)):
            execute(client, ADD_STUDENT, {"name": name, "email": email, "age": age}, token=token)

        body = execute(
            client,
            """
            {
              getAllStudents(
                filter: {minAge: 20, maxAge: 25}
                options: {sortBy: "age", sortOrder: "DESC", limit: 1000}
              ) { name }
            }
            """,
        )
        assert [s["name"] for s in body["data"]["getAllStudents"]] == ["Alan", "Ada"]

        body = execute(client, '{ getAllStudents(filter: {nameContains: "GR"}) { name } }')
        assert [s["name"] for s in body["data"]["getAllStudents"]] == ["Grace"]


class TestEnrollment:
    def test_enroll_then_delete_course(self, client, token):
        student_id = execute(
            client, ADD_STUDENT, {"name": "Ada", "email": "ada@x.com", "age": 22}, token=token
        )["data"]["addStudent"]["id"]
        course_id = execute(
            client, ADD_COURSE, {"title": "CS101", "code": "CS101", "credits": 3, "instructor": "Grace"}, token=token
        )["data"]["addCourse"]["id"]

        body = execute(client, ENROLL, {"studentId": student_id, "courseId": course_id}, token=token)
        assert body["data"]["enrollStudent"]["courses"] == [{"code": "CS101"}]
        assert body["data"]["enrollStudent"]["coursesCount"] == 1

        body = execute(
            client,
            "query ($id: ID!) { getCourse(id: $id) { students { name } studentsCount } }",
            {"id": course_id},
        )
        assert body["data"]["getCourse"] == {"students": [{"name": "Ada"}], "studentsCount": 1}

        body = execute(client, "mutation ($id: ID!) { deleteCourse(id: $id) }", {"id": course_id}, token=token)
        assert body["data"]["deleteCourse"] is True

        body = execute(
            client,
            "query ($id: ID!) { getStudent(id: $id) { courses { id } coursesCount } }",
            {"id": student_id},
        )
        assert body["data"]["getStudent"] == {"courses": [], "coursesCount": 0}

    def test_enroll_unknown_course(self, client, token):
        student_id = execute(
            client, ADD_STUDENT, {"name": "Ada", "email": "ada@x.com", "age": 22}, token=token
        )["data"]["addStudent"]["id"]
        body = execute(client, ENROLL, {"studentId": student_id, "courseId": "missing"}, token=token)
        assert error_code(body) == "NOT_FOUND"

    def test_unenroll_and_delete_student(self, client, token):
        student_id = execute(
            client, ADD_STUDENT, {"name": "Ada", "email": "ada@x.com", "age": 22}, token=token
        )["data"]["addStudent"]["id"]
        course_id = execute(
            client, ADD_COURSE, {"title": "CS101", "code": "CS101", "credits": 3, "instructor": "Grace"}, token=token
        )["data"]["addCourse"]["id"]
        execute(client, ENROLL, {"studentId": student_id, "courseId": course_id}, token=token)

        body = execute(
            client,
            "mutation ($s: ID!, $c: ID!) { unenrollStudent(studentId: $s, courseId: $c) { coursesCount } }",
            {"s": student_id, "c": course_id},
            token=token,
        )
        assert body["data"]["unenrollStudent"]["coursesCount"] == 0

        execute(client, ENROLL, {"studentId": student_id, "courseId": course_id}, token=token)
        body = execute(client, "mutation ($id: ID!) { deleteStudent(id: $id) }", {"id": student_id}, token=token)
        assert body["data"]["deleteStudent"] is True

        body = execute(
            client,
            "query ($id: ID!) { getCourse(id: $id) { studentsCount } }",
            {"id": course_id},
        )
        assert body["data"]["getCourse"]["studentsCount"] == 0

    def test_anonymous_delete_is_rejected(self, client):
        body = execute(client, 'mutation { deleteStudent(id: "any") }')
        assert error_code(body) == "UNAUTHENTICATED"
