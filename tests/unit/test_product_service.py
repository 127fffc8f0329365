"""
Unit tests for ProductService.

Run: pytest tests/unit/test_product_service.py -v
Run with coverage: pytest tests/unit/test_product_service.py --cov=services/product_service
"""

import pytest
from unittest.mock import patch

# Import what we're testing
from services.product_service import ProductService, get_product_service, NIL_UUID
from models.product import ProductCreate, ProductUpdate, ProductType
from exceptions import ProductNotFoundError, ProductSlugExistsError, DatabaseError

# Import test utilities
from tests.factories import ProductFactory, VariantFactory, ImageFactory


class TestProductServiceGetAll:
    """Tests for ProductService.get_all()"""

    def test_get_all_returns_products(self, mock_db, mock_supabase, sample_product_data):
        """Should return products with embedded variants and total count."""
        # Arrange
        mock_supabase.set_table_data("products", [sample_product_data])
        service = ProductService()

        # Act
        products, total = service.get_all()

        # Assert
        assert total == 1
        assert products[0].slug == "classic-tee"
        assert len(products[0].product_variants) == 2
        assert products[0].total_stock == 5

    def test_get_all_empty_returns_empty_list(self, mock_db, mock_supabase):
        """Should return empty list when no products exist."""
        # Arrange
        mock_supabase.set_table_data("products", [], count=0)
        service = ProductService()

        # Act
        products, total = service.get_all()

        # Assert
        assert products == []
        assert total == 0

    def test_get_all_with_pagination(self, mock_db, mock_supabase):
        """Should return the requested page, newest first."""
        # Arrange
        rows = [
            ProductFactory.create(slug=f"p-{i}", created_at=f"2025-01-0{i}T00:00:00Z")
            for i in range(1, 6)
        ]
        mock_supabase.set_table_data("products", rows)
        service = ProductService()

        # Act
        products, total = service.get_all(page=2, page_size=2)

        # Assert
        assert total == 5
        assert [p.slug for p in products] == ["p-3", "p-2"]

    def test_get_all_hides_inactive_by_default(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", [
            ProductFactory.create(slug="on", is_active=True),
            ProductFactory.create(slug="off", is_active=False),
        ])
        service = ProductService()

        active, _ = service.get_all()
        everything, _ = service.get_all(active_only=False)

        assert [p.slug for p in active] == ["on"]
        assert len(everything) == 2

    def test_get_all_filters_by_product_type(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", [
            ProductFactory.create(slug="tee", product_type="clothes"),
            ProductFactory.create(slug="sneaker", product_type="shoes"),
        ])
        service = ProductService()

        products, total = service.get_all(product_type=ProductType.SHOES)

        assert [p.slug for p in products] == ["sneaker"]
        assert total == 1

    def test_get_all_database_error(self, mock_db, mock_supabase):
        mock_supabase.set_table_error("products", "select", RuntimeError("down"))
        service = ProductService()

        with pytest.raises(DatabaseError):
            service.get_all()


class TestProductServiceGetOne:
    """Tests for get_by_id() / get_by_slug()"""

    def test_get_by_id_returns_details(self, mock_db, mock_supabase, sample_product_data):
        mock_supabase.set_table_data("products", [sample_product_data])
        service = ProductService()

        product = service.get_by_id("prod-1")

        assert product.name == "Classic Tee"
        assert product.product_type == ProductType.CLOTHES

    def test_get_by_id_not_found(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", [])
        service = ProductService()

        with pytest.raises(ProductNotFoundError):
            service.get_by_id("missing")

    def test_get_by_id_maps_zero_rows_error(self, mock_db, mock_supabase):
        """Should treat PostgREST's single-row error as not found."""
        mock_supabase.set_table_error(
            "products", "select",
            RuntimeError("JSON object requested, multiple (or no) rows returned: 0 rows")
        )
        service = ProductService()

        with pytest.raises(ProductNotFoundError):
            service.get_by_id("missing")

    def test_get_by_slug_missing_returns_none(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", [])
        service = ProductService()

        assert service.get_by_slug("nope") is None
        assert service.slug_exists("nope") is False


class TestProductServiceCreate:
    """Tests for ProductService.create()"""

    def test_create_inserts_row(self, mock_db, mock_supabase):
        """Should insert the product and return it with an id."""
        # Arrange
        mock_supabase.set_table_data("products", [])
        service = ProductService()
        data = ProductCreate(name="Classic Tee", slug="Classic Tee", price=29, brand="")

        # Act
        product = service.create(data)

        # Assert
        assert product.id
        assert product.slug == "classic-tee"
        row = mock_supabase.rows("products")[0]
        assert row["brand"] is None
        assert row["product_type"] == "clothes"

    def test_create_duplicate_slug_raises(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", [ProductFactory.create(slug="classic-tee")])
        service = ProductService()

        with pytest.raises(ProductSlugExistsError) as exc_info:
            service.create(ProductCreate(name="Other", slug="classic-tee", price=10))

        assert exc_info.value.status_code == 409
        assert len(mock_supabase.rows("products")) == 1


class TestProductServiceUpdate:
    """Tests for ProductService.update()"""

    def test_update_only_sends_provided_fields(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", [
            ProductFactory.create(id="p1", slug="tee", price=20)
        ])
        service = ProductService()

        product = service.update("p1", ProductUpdate(price=25))

        assert product.price == 25
        payload = mock_supabase.calls_for("products", "update")[0]["payload"]
        assert payload == {"price": 25}

    def test_update_to_taken_slug_raises(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", [
            ProductFactory.create(id="p1", slug="tee"),
            ProductFactory.create(id="p2", slug="hoodie"),
        ])
        service = ProductService()

        with pytest.raises(ProductSlugExistsError):
            service.update("p1", ProductUpdate(slug="hoodie"))

    def test_update_keeping_own_slug_is_fine(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", [
            ProductFactory.create(id="p1", slug="tee"),
        ])
        service = ProductService()

        product = service.update("p1", ProductUpdate(slug="tee", name="Tee 2"))

        assert product.name == "Tee 2"

    def test_update_with_nothing_returns_existing(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", [
            ProductFactory.create(id="p1", slug="tee"),
        ])
        service = ProductService()

        product = service.update("p1", ProductUpdate())

        assert product.id == "p1"
        assert mock_supabase.calls_for("products", "update") == []

    def test_update_missing_product(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", [])
        service = ProductService()

        with pytest.raises(ProductNotFoundError):
            service.update("missing", ProductUpdate(price=1))


class TestProductServiceDelete:
    """Tests for delete() / delete_all()"""

    def test_delete_removes_variants_and_images(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", [ProductFactory.create(id="p1")])
        mock_supabase.set_table_data("product_variants", [
            VariantFactory.create(product_id="p1"),
            VariantFactory.create(product_id="p2"),
        ])
        mock_supabase.set_table_data("product_images", [ImageFactory.create(product_id="p1")])
        service = ProductService()

        assert service.delete("p1") is True

        assert mock_supabase.rows("products") == []
        assert [r["product_id"] for r in mock_supabase.rows("product_variants")] == ["p2"]
        assert mock_supabase.rows("product_images") == []

    def test_delete_missing_product(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", [])
        service = ProductService()

        with pytest.raises(ProductNotFoundError):
            service.delete("missing")

    def test_delete_all_clears_tables(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", ProductFactory.create_batch(3))
        mock_supabase.set_table_data("product_variants", [VariantFactory.create()])
        service = ProductService()

        deleted = service.delete_all()

        assert deleted == 3
        assert mock_supabase.rows("products") == []
        assert mock_supabase.rows("product_variants") == []
        filters = mock_supabase.calls_for("products", "delete")[0]["filters"]
        assert filters == [("neq", "id", NIL_UUID)]

    def test_delete_all_with_nothing(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", [])
        service = ProductService()

        assert service.delete_all() == 0
        assert mock_supabase.calls_for("products", "delete") == []

    def test_delete_all_prefers_admin_client(self, mock_db, mock_supabase):
        from tests.conftest import MockSupabaseClient

        admin = MockSupabaseClient()
        admin.set_table_data("products", ProductFactory.create_batch(2))
        service = ProductService()

        with patch("services.product_service.get_admin_client", return_value=admin):
            deleted = service.delete_all()

        assert deleted == 2
        assert admin.rows("products") == []
        assert mock_supabase.calls == []


class TestProductServiceCount:
    """Tests for ProductService.count()"""

    def test_count_active(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", [
            ProductFactory.create(is_active=True),
            ProductFactory.create(is_active=False),
        ])
        service = ProductService()

        assert service.count() == 1
        assert service.count(active_only=False) == 2


class TestGetProductService:
    """Tests for get_product_service singleton."""

    def test_returns_same_instance(self, mock_db):
        assert get_product_service() is get_product_service()
