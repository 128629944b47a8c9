"""Tests for the generic entity model and service against a SQLite store."""

import pytest

from qcadmin.auth.types import RequestContext, SessionUser
from qcadmin.core.errors import ConflictError, ConstraintError, ErrorKind
from qcadmin.core.types import EntityConfig, Operation, QueryOptions, SortOrder
from qcadmin.entities.generic import EntityController, EntityModel, EntityService
from qcadmin.entities.generic.model import like_pattern
from qcadmin.persistence import Database, DatabaseConfig

REASONS = EntityConfig(
    entity_name="SamplingReason",
    table_name="sampling_reasons",
    api_path="/api/sampling-reasons",
)


@pytest.fixture
def db(tmp_path):
    database = Database(DatabaseConfig(url=f"sqlite:///{tmp_path / 'model.db'}"))
    database.connect()
    database.create_schema()
    yield database
    database.close()


@pytest.fixture
def model(db):
    return EntityModel(REASONS, db)


@pytest.fixture
def service(model):
    return EntityService(model)


def options(**kwargs) -> QueryOptions:
    defaults = {"page": 1, "limit": 20, "sort_by": "name", "sort_order": SortOrder.ASC}
    defaults.update(kwargs)
    return QueryOptions(**defaults)


class TestLikePattern:
    def test_plain(self):
        assert like_pattern("weld") == "%weld%"

    def test_metacharacters_are_escaped(self):
        assert like_pattern("50%_off\\") == "%50\\%\\_off\\\\%"


class TestEntityModelConstruction:
    def test_unknown_table(self, db):
        config = EntityConfig("Ghost", "ghosts", "/api/ghosts")
        with pytest.raises(ValueError, match="No table definition"):
            EntityModel(config, db)

    def test_unknown_searchable_field(self, db):
        config = EntityConfig(
            "SamplingReason", "sampling_reasons", "/api/x", searchable_fields=("nope",)
        )
        with pytest.raises(ValueError, match="not columns"):
            EntityModel(config, db)

    def test_system_fields_are_not_writable(self, model):
        assert "id" not in model.writable_columns
        assert "created_by" not in model.writable_columns
        assert "name" in model.writable_columns


class TestEntityModel:
    @pytest.mark.asyncio
    async def test_create_and_get(self, model):
        row = await model.create({"name": "Audit", "id": 77, "updated_by": 9}, user_id=3)
        assert row["id"] != 77
        assert row["created_by"] == 3
        assert row["updated_by"] == 3
        assert (await model.get_by_id(row["id"]))["name"] == "Audit"

    @pytest.mark.asyncio
    async def test_duplicate_name_is_a_conflict(self, model):
        await model.create({"name": "Audit"}, user_id=1)
        with pytest.raises(ConflictError, match="already exists"):
            await model.create({"name": "Audit"}, user_id=1)

    @pytest.mark.asyncio
    async def test_not_null_violation_is_not_a_conflict(self, model):
        row = await model.create({"name": "Audit"}, user_id=1)
        with pytest.raises(ConstraintError, match="violates a required field"):
            await model.update(row["id"], {"is_active": None}, user_id=1)

    @pytest.mark.asyncio
    async def test_second_page_uses_default_limit_for_offset(self, model):
        for i in range(25):
            await model.create({"name": f"Reason {i:02d}"}, user_id=1)
        page = await model.get_all(QueryOptions(page=2))
        assert [r["name"] for r in page.data] == [f"Reason {i:02d}" for i in range(20, 25)]
        assert page.pagination.to_dict()["totalPages"] == 2

    @pytest.mark.asyncio
    async def test_update_only_touches_given_fields(self, model):
        row = await model.create({"name": "Audit", "description": "keep"}, user_id=1)
        updated = await model.update(row["id"], {"name": "Audit 2"}, user_id=2)
        assert updated["description"] == "keep"
        assert updated["updated_by"] == 2
        assert updated["created_by"] == 1

    @pytest.mark.asyncio
    async def test_update_missing_row(self, model):
        assert await model.update(404, {"name": "x"}, user_id=1) is None

    @pytest.mark.asyncio
    async def test_change_status_flips(self, model):
        row = await model.create({"name": "Audit"}, user_id=1)
        assert await model.change_status(row["id"], user_id=1) is True
        assert (await model.get_by_id(row["id"]))["is_active"] is False
        assert await model.change_status(404, user_id=1) is False

    @pytest.mark.asyncio
    async def test_delete(self, model):
        row = await model.create({"name": "Audit"}, user_id=1)
        assert await model.delete(row["id"]) is True
        assert await model.delete(row["id"]) is False

    @pytest.mark.asyncio
    async def test_page_and_count_share_predicate(self, model):
        for name in ("Alpha", "Beta", "Gamma", "Delta"):
            await model.create({"name": name}, user_id=1)
        result = await model.get_all(options(limit=2, search="a", page=2))
        assert result.pagination.total == 4
        assert [r["name"] for r in result.data] == ["Delta", "Gamma"]

    @pytest.mark.asyncio
    async def test_exists_is_case_insensitive(self, model):
        row = await model.create({"name": "Audit"}, user_id=1)
        assert await model.exists("name", "  AUDIT ") is True
        assert await model.exists("name", "audit", exclude_id=row["id"]) is False

    @pytest.mark.asyncio
    async def test_transaction_rolls_back(self, db, model):
        with pytest.raises(RuntimeError):
            async with db.transaction() as tx:
                await model.create({"name": "Doomed"}, user_id=1, executor=tx)
                raise RuntimeError("boom")
        assert await model.count(QueryOptions()) == 0

    @pytest.mark.asyncio
    async def test_health_reports_unhealthy_store(self, db, model):
        db.close()
        report = await model.health()
        assert report["status"] == "unhealthy"
        assert report["checks"]["database"] == "disconnected"


class TestEntityService:
    def test_validate_requires_object(self, service):
        assert service.validate(["x"], Operation.CREATE) == ["Request body must be a JSON object"]

    def test_update_does_not_require_name(self, service):
        assert service.validate({"description": "x"}, Operation.UPDATE) == []

    def test_custom_rules_run_after_baseline(self, model):
        service = EntityService(model, rules=[lambda data, op: ["custom rule"]])
        assert service.validate({}, Operation.CREATE) == ["Name is required", "custom rule"]

    def test_apply_defaults(self, service):
        applied = service.apply_defaults(
            QueryOptions(limit=1000, sort_by="bogus", search="  "), default_active=True
        )
        assert applied.page == 1
        assert applied.limit == 100
        assert applied.sort_by == "name"
        assert applied.sort_order is SortOrder.ASC
        assert applied.search is None
        assert applied.is_active is True

    def test_authorize(self, service):
        viewer = SessionUser(id=1, username="v", role="viewer")
        refusal = service.authorize(viewer, "create")
        assert refusal.kind is ErrorKind.AUTHORIZATION
        assert refusal.error == "Insufficient permissions to create SamplingReason"
        assert service.authorize(viewer, "read") is None

    @pytest.mark.asyncio
    async def test_invalid_id(self, service):
        result = await service.get_by_id(0)
        assert result.kind is ErrorKind.VALIDATION
        assert result.error == "Invalid ID provided"

    @pytest.mark.asyncio
    async def test_not_found(self, service):
        result = await service.get_by_id(12)
        assert result.kind is ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_delete_missing_row(self, service):
        result = await service.delete(12)
        assert result.kind is ErrorKind.NO_ROWS_AFFECTED
        assert result.error == "SamplingReason not found or no changes made"

    @pytest.mark.asyncio
    async def test_missing_row_messages_match(self, service):
        deleted = await service.delete(12)
        toggled = await service.change_status(12, 1)
        assert deleted.error == toggled.error

    @pytest.mark.asyncio
    async def test_conflict_becomes_result(self, service):
        await service.create({"name": "Audit"}, 1)
        result = await service.create({"name": "Audit"}, 1)
        assert result.success is False
        assert result.kind is ErrorKind.CONFLICT

    def test_null_is_active_fails_validation(self, service):
        errors = service.validate({"is_active": None}, Operation.UPDATE)
        assert errors == ["is_active must be a boolean value"]

    def test_constraint_error_becomes_validation_result(self, service):
        result = service.failure("update", ConstraintError("SamplingReason data is bad"))
        assert result.kind is ErrorKind.VALIDATION
        assert result.error == "SamplingReason data is bad"

    @pytest.mark.asyncio
    async def test_store_failure_becomes_system_result(self, db, service):
        db.close()
        result = await service.get_all()
        assert result.kind is ErrorKind.SYSTEM

    @pytest.mark.asyncio
    async def test_search_without_searchable_fields(self, db):
        config = EntityConfig(
            "SamplingReason", "sampling_reasons", "/api/x", searchable_fields=()
        )
        result = await EntityService(EntityModel(config, db)).search("x")
        assert result.kind is ErrorKind.VALIDATION
        assert result.error == "SamplingReason has no searchable fields"

    @pytest.mark.asyncio
    async def test_search_info(self, service):
        await service.create({"name": "Weld Check"}, 1)
        result = await service.get_by_name("  weld ")
        assert result.extra["searchInfo"] == {
            "query": "weld",
            "searchType": "name",
            "resultCount": 1,
        }


class TestEntityControllerPermissions:
    @pytest.fixture
    def locked(self, model):
        """Controller whose service only lets system admins read."""
        return EntityController(EntityService(model, permissions={"read": ("system_admin",)}))

    @pytest.fixture
    def ctx(self):
        return RequestContext(request_id="req_1", user=SessionUser(id=5, username="u", role="user"))

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "handler,params",
        [
            ("get_all", {}),
            ("get_by_name", {"name": "weld"}),
            ("filter_status", {"status": "true"}),
            ("search", {"pattern": "weld"}),
        ],
    )
    async def test_every_read_handler_asks_the_hook(self, locked, ctx, handler, params):
        response = await getattr(locked, handler)(ctx, params)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_statistics_asks_the_hook(self, locked, ctx):
        assert (await locked.statistics(ctx)).status_code == 403

    @pytest.mark.asyncio
    async def test_admin_passes(self, locked):
        admin = RequestContext(request_id="req_2", user=SessionUser(id=1, username="a", role="admin"))
        response = await locked.search(admin, {"pattern": "weld"})
        assert response.status_code == 200
