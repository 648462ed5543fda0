import pytest
from sqlalchemy.exc import InvalidRequestError
from database.models import Draft

class TestDraftModel:
    async def test_owned_collections_never_lazy_load(self, database, make_draft):
        draft = await make_draft()
        async with database.session() as session:
            loaded = await session.get(Draft, draft.id)
            with pytest.raises(InvalidRequestError):
                loaded.picks
            with pytest.raises(InvalidRequestError):
                loaded.order_entries
