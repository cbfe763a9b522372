"""Catalog operations: products, variants, listings, categories and brands."""

import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from libs.auth.models import AuthUser
from libs.common.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationFailedError,
)
from libs.common.logging import get_logger
from libs.common.text import slugify
from services.store_service.models import (
    Brand,
    Category,
    Product,
    ProductImage,
    ProductListing,
    ProductVariant,
    Review,
)
from services.store_service.schemas import (
    BrandCreate,
    BrandUpdate,
    CategoryCreate,
    CategoryResponse,
    CategoryTree,
    CategoryUpdate,
    ListingCreate,
    ProductCreate,
    ProductFilters,
    ProductImageIn,
    ProductSort,
    ProductUpdate,
    VariantCreate,
)
from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)

TENTHS = Decimal("0.1")

PRODUCT_LOAD_OPTIONS = (
    selectinload(Product.brand),
    selectinload(Product.categories),
    selectinload(Product.images),
)

SORT_ORDERS = {
    ProductSort.NEWEST: (Product.created_at.desc(),),
    ProductSort.PRICE_ASC: (Product.price.asc(), Product.created_at.desc()),
    ProductSort.PRICE_DESC: (Product.price.desc(), Product.created_at.desc()),
    ProductSort.RATING: (Product.average_rating.desc(), Product.total_reviews.desc()),
    ProductSort.POPULAR: (Product.total_sold.desc(), Product.views.desc()),
    ProductSort.NAME: (Product.name.asc(),),
}


def build_images(images: Sequence[ProductImageIn]) -> list[ProductImage]:
    """Materialise image rows with exactly one primary (the first flagged, else the first)."""
    primary_index = next(
        (index for index, image in enumerate(images) if image.is_primary), 0
    )
    return [
        ProductImage(
            url=image.url,
            alt_text=image.alt_text,
            is_primary=index == primary_index,
            sort_order=index,
        )
        for index, image in enumerate(images)
    ]


def ensure_can_manage(seller_id: Optional[uuid.UUID], actor: AuthUser) -> None:
    if actor.is_admin:
        return
    if actor.seller_id is None or actor.seller_id != seller_id:
        raise ForbiddenError("Not authorized to manage this product")


class CatalogService:
    """Product catalog reads and writes."""

    # ------------------------------------------------------------------
    # Loading helpers
    # ------------------------------------------------------------------

    async def load_product(
        self,
        db: AsyncSession,
        product_id: uuid.UUID,
        *,
        include_inactive: bool = True,
        with_offers: bool = False,
    ) -> Product:
        options = list(PRODUCT_LOAD_OPTIONS)
        if with_offers:
            options += [selectinload(Product.variants), selectinload(Product.listings)]
        query = (
            select(Product)
            .where(Product.id == product_id)
            .options(*options)
            .execution_options(populate_existing=True)
        )
        if not include_inactive:
            query = query.where(Product.is_active.is_(True))
        product = (await db.execute(query)).scalar_one_or_none()
        if product is None:
            raise NotFoundError("Product not found")
        return product

    async def _ensure_unique_slug(
        self,
        db: AsyncSession,
        model,
        slug: str,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        if not slug:
            raise ValidationFailedError("Name must contain letters or digits")
        query = select(model.id).where(model.slug == slug)
        if exclude_id is not None:
            query = query.where(model.id != exclude_id)
        if (await db.execute(query)).first() is not None:
            raise ConflictError(f"Slug '{slug}' already exists", field="slug")

    async def _load_categories(
        self, db: AsyncSession, category_ids: Sequence[uuid.UUID]
    ) -> list[Category]:
        if not category_ids:
            return []
        result = await db.execute(
            select(Category).where(Category.id.in_(set(category_ids)))
        )
        categories = list(result.scalars().all())
        if len(categories) != len(set(category_ids)):
            raise NotFoundError("One or more categories not found")
        return categories

    async def _ensure_brand(self, db: AsyncSession, brand_id: Optional[uuid.UUID]):
        if brand_id is not None and await db.get(Brand, brand_id) is None:
            raise NotFoundError("Brand not found")

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def create_product(
        self, db: AsyncSession, *, actor: AuthUser, data: ProductCreate
    ) -> Product:
        if actor.is_admin:
            seller_id = data.seller_id or actor.seller_id
        else:
            if actor.seller_id is None:
                raise ForbiddenError("A seller profile is required to create products")
            seller_id = actor.seller_id

        slug = slugify(data.name)
        await self._ensure_unique_slug(db, Product, slug)
        await self._ensure_brand(db, data.brand_id)
        categories = await self._load_categories(db, data.category_ids)

        product = Product(
            seller_id=seller_id,
            brand_id=data.brand_id,
            name=data.name.strip(),
            slug=slug,
            description=data.description,
            short_description=data.short_description,
            price=data.price,
            compare_at_price=data.compare_at_price,
            cost_per_item=data.cost_per_item,
            stock=data.stock,
            sku=data.sku,
            specifications=[spec.model_dump() for spec in data.specifications],
            features=data.features,
            tags=data.tags,
            is_featured=data.is_featured,
            meta_title=data.meta_title,
            meta_description=data.meta_description,
            categories=categories,
            images=build_images(data.images),
        )
        db.add(product)
        await db.commit()

        logger.info("Created product %s (%s) for seller %s", product.id, slug, seller_id)
        return await self.load_product(db, product.id)

    async def update_product(
        self,
        db: AsyncSession,
        *,
        product_id: uuid.UUID,
        actor: AuthUser,
        data: ProductUpdate,
    ) -> Product:
        product = await self.load_product(db, product_id)
        ensure_can_manage(product.seller_id, actor)

        updates = data.model_dump(exclude_unset=True)
        category_ids = updates.pop("category_ids", None)
        images = updates.pop("images", None)

        if "name" in updates and updates["name"]:
            slug = slugify(updates["name"])
            await self._ensure_unique_slug(db, Product, slug, exclude_id=product.id)
            product.slug = slug
        if "brand_id" in updates:
            await self._ensure_brand(db, updates["brand_id"])

        for field, value in updates.items():
            setattr(product, field, value)

        if category_ids is not None:
            product.categories = await self._load_categories(db, category_ids)
        if images is not None:
            product.images = build_images(data.images)

        await db.commit()
        return await self.load_product(db, product.id)

    async def get_by_id(self, db: AsyncSession, id_or_slug: str) -> Product:
        """Fetch an active product by id or slug and count the view."""
        try:
            condition = Product.id == uuid.UUID(id_or_slug)
        except ValueError:
            condition = Product.slug == id_or_slug

        product_id = (
            await db.execute(
                select(Product.id).where(condition, Product.is_active.is_(True))
            )
        ).scalar_one_or_none()
        if product_id is None:
            raise NotFoundError("Product not found")

        await db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(views=Product.views + 1)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        return await self.load_product(db, product_id, with_offers=True)

    def _filter_conditions(self, filters: ProductFilters) -> list:
        conditions = []
        if not filters.include_inactive:
            conditions.append(Product.is_active.is_(True))
        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            conditions.append(
                or_(
                    Product.name.ilike(pattern),
                    Product.description.ilike(pattern),
                    Product.short_description.ilike(pattern),
                )
            )
        if filters.category_id:
            conditions.append(
                Product.categories.any(Category.id == filters.category_id)
            )
        if filters.brand_id:
            conditions.append(Product.brand_id == filters.brand_id)
        if filters.seller_id:
            conditions.append(Product.seller_id == filters.seller_id)
        if filters.min_price is not None or filters.max_price is not None:
            conditions.append(
                or_(
                    _price_between(Product.price, filters.min_price, filters.max_price),
                    Product.variants.any(
                        and_(
                            ProductVariant.is_active.is_(True),
                            _price_between(
                                ProductVariant.price,
                                filters.min_price,
                                filters.max_price,
                            ),
                        )
                    ),
                )
            )
        if filters.min_rating is not None:
            conditions.append(Product.average_rating >= filters.min_rating)
        if filters.in_stock:
            conditions.append(
                or_(
                    Product.stock > 0,
                    Product.listings.any(
                        and_(
                            ProductListing.is_available.is_(True),
                            ProductListing.stock_quantity > 0,
                        )
                    ),
                )
            )
        if filters.is_featured is not None:
            conditions.append(Product.is_featured.is_(filters.is_featured))
        return conditions

    async def list_products(
        self,
        db: AsyncSession,
        *,
        filters: ProductFilters,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Product], int]:
        """Filter, sort and paginate products; all filters run in SQL."""
        conditions = self._filter_conditions(filters)

        total = (
            await db.execute(select(func.count(Product.id)).where(*conditions))
        ).scalar_one()

        result = await db.execute(
            select(Product)
            .where(*conditions)
            .options(*PRODUCT_LOAD_OPTIONS)
            .order_by(*SORT_ORDERS[filters.sort], Product.id)
            .offset((page - 1) * limit)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all()), total

    async def search(
        self, db: AsyncSession, *, text: str, page: int = 1, limit: int = 20
    ) -> tuple[list[Product], int]:
        filters = ProductFilters(search=text, sort=ProductSort.RATING)
        return await self.list_products(db, filters=filters, page=page, limit=limit)

    async def featured(self, db: AsyncSession, *, limit: int = 10) -> list[Product]:
        result = await db.execute(
            select(Product)
            .where(Product.is_active.is_(True), Product.is_featured.is_(True))
            .options(*PRODUCT_LOAD_OPTIONS)
            .order_by(Product.average_rating.desc(), Product.created_at.desc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def related(
        self, db: AsyncSession, *, product_id: uuid.UUID, limit: int = 8
    ) -> list[Product]:
        product = await self.load_product(db, product_id)
        category_ids = [category.id for category in product.categories]
        if not category_ids:
            return []
        result = await db.execute(
            select(Product)
            .where(
                Product.id != product.id,
                Product.is_active.is_(True),
                Product.categories.any(Category.id.in_(category_ids)),
            )
            .options(*PRODUCT_LOAD_OPTIONS)
            .order_by(Product.average_rating.desc(), Product.total_sold.desc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def seller_products(
        self,
        db: AsyncSession,
        *,
        seller_id: uuid.UUID,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Product], int]:
        filters = ProductFilters(seller_id=seller_id, include_inactive=True)
        return await self.list_products(db, filters=filters, page=page, limit=limit)

    async def toggle_active(
        self, db: AsyncSession, *, product_id: uuid.UUID, actor: AuthUser
    ) -> Product:
        product = await self.load_product(db, product_id)
        ensure_can_manage(product.seller_id, actor)
        product.is_active = not product.is_active
        await db.commit()
        logger.info("Product %s is_active=%s", product.id, product.is_active)
        return await self.load_product(db, product.id)

    async def hard_delete(
        self, db: AsyncSession, *, product_id: uuid.UUID, actor: AuthUser
    ) -> None:
        product = await self.load_product(db, product_id, with_offers=True)
        ensure_can_manage(product.seller_id, actor)
        await db.delete(product)
        await db.commit()
        logger.info("Deleted product %s", product_id)

    async def recompute_rating(self, db: AsyncSession, product_id: uuid.UUID) -> None:
        """Re-derive average rating and review count from approved reviews.

        Runs inside the caller's transaction.
        """
        rating_sum, count = (
            await db.execute(
                select(func.sum(Review.rating), func.count(Review.id)).where(
                    Review.product_id == product_id, Review.is_approved.is_(True)
                )
            )
        ).one()
        average_rating = (
            float(
                (Decimal(rating_sum) / count).quantize(TENTHS, rounding=ROUND_HALF_UP)
            )
            if count
            else 0.0
        )
        await db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(average_rating=average_rating, total_reviews=count)
            .execution_options(synchronize_session=False)
        )

    # ------------------------------------------------------------------
    # Variants and listings
    # ------------------------------------------------------------------

    async def create_variant(
        self,
        db: AsyncSession,
        *,
        product_id: uuid.UUID,
        actor: AuthUser,
        data: VariantCreate,
    ) -> ProductVariant:
        product = await self.load_product(db, product_id)
        ensure_can_manage(product.seller_id, actor)

        sku = data.sku.strip().upper()
        existing = await db.execute(
            select(ProductVariant.id).where(ProductVariant.sku == sku)
        )
        if existing.first() is not None:
            raise ConflictError(f"SKU '{sku}' already exists", field="sku")

        if data.is_default:
            await db.execute(
                update(ProductVariant)
                .where(ProductVariant.product_id == product.id)
                .values(is_default=False)
                .execution_options(synchronize_session=False)
            )

        variant = ProductVariant(
            product_id=product.id,
            sku=sku,
            name=data.name,
            attributes=[attribute.model_dump() for attribute in data.attributes],
            price=data.price,
            compare_at_price=data.compare_at_price,
            stock_quantity=data.stock_quantity,
            image_url=data.image_url,
            is_default=data.is_default,
        )
        db.add(variant)
        await db.commit()
        return variant

    async def list_variants(
        self, db: AsyncSession, *, product_id: uuid.UUID
    ) -> list[ProductVariant]:
        result = await db.execute(
            select(ProductVariant)
            .where(ProductVariant.product_id == product_id)
            .order_by(ProductVariant.is_default.desc(), ProductVariant.sku)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def create_listing(
        self,
        db: AsyncSession,
        *,
        product_id: uuid.UUID,
        actor: AuthUser,
        data: ListingCreate,
    ) -> ProductListing:
        product = await self.load_product(db, product_id)

        if actor.is_admin and data.seller_id is not None:
            seller_id = data.seller_id
        elif actor.seller_id is not None:
            seller_id = actor.seller_id
        else:
            raise ForbiddenError("A seller profile is required to create listings")

        if data.variant_id is not None:
            variant = await db.get(ProductVariant, data.variant_id)
            if variant is None or variant.product_id != product.id:
                raise NotFoundError("Variant not found for this product")
        if data.shipping_days_min > data.shipping_days_max:
            raise ValidationFailedError(
                "shipping_days_min cannot exceed shipping_days_max"
            )

        listing = ProductListing(
            product_id=product.id,
            variant_id=data.variant_id,
            seller_id=seller_id,
            price=data.price,
            stock_quantity=data.stock_quantity,
            condition=data.condition,
            shipping_days_min=data.shipping_days_min,
            shipping_days_max=data.shipping_days_max,
            returnable=data.returnable,
            return_window_days=data.return_window_days,
            is_available=data.stock_quantity > 0,
        )
        db.add(listing)
        await db.commit()
        return listing

    async def list_listings(
        self, db: AsyncSession, *, product_id: uuid.UUID
    ) -> list[ProductListing]:
        result = await db.execute(
            select(ProductListing)
            .where(ProductListing.product_id == product_id)
            .order_by(ProductListing.price.asc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def update_listing_stock(
        self,
        db: AsyncSession,
        *,
        listing_id: uuid.UUID,
        actor: AuthUser,
        stock_quantity: int,
    ) -> ProductListing:
        listing = await db.get(ProductListing, listing_id, populate_existing=True)
        if listing is None:
            raise NotFoundError("Product listing not found")
        ensure_can_manage(listing.seller_id, actor)

        listing.stock_quantity = stock_quantity
        listing.is_available = stock_quantity > 0
        await db.commit()
        return listing

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def _get_category(self, db: AsyncSession, category_id) -> Category:
        category = await db.get(Category, category_id, populate_existing=True)
        if category is None:
            raise NotFoundError("Category not found")
        return category

    async def _relevel_children(self, db: AsyncSession, parent: Category) -> None:
        """Propagate `level` down the subtree below `parent`."""
        frontier = [parent]
        while frontier:
            node = frontier.pop()
            result = await db.execute(
                select(Category).where(Category.parent_id == node.id)
            )
            for child in result.scalars().all():
                child.level = node.level + 1
                frontier.append(child)

    async def _is_descendant(
        self, db: AsyncSession, candidate_id: uuid.UUID, ancestor_id: uuid.UUID
    ) -> bool:
        current_id: Optional[uuid.UUID] = candidate_id
        while current_id is not None:
            if current_id == ancestor_id:
                return True
            current_id = (
                await db.execute(
                    select(Category.parent_id).where(Category.id == current_id)
                )
            ).scalar_one_or_none()
        return False

    async def create_category(
        self, db: AsyncSession, *, data: CategoryCreate
    ) -> Category:
        slug = slugify(data.name)
        await self._ensure_unique_slug(db, Category, slug)

        level = 0
        if data.parent_id is not None:
            parent = await self._get_category(db, data.parent_id)
            level = parent.level + 1

        category = Category(
            name=data.name.strip(),
            slug=slug,
            description=data.description,
            image_url=data.image_url,
            parent_id=data.parent_id,
            level=level,
            sort_order=data.sort_order,
            is_active=data.is_active,
        )
        db.add(category)
        await db.commit()
        return category

    async def update_category(
        self, db: AsyncSession, *, category_id: uuid.UUID, data: CategoryUpdate
    ) -> Category:
        category = await self._get_category(db, category_id)
        updates = data.model_dump(exclude_unset=True)

        if "name" in updates and updates["name"]:
            slug = slugify(updates["name"])
            await self._ensure_unique_slug(db, Category, slug, exclude_id=category.id)
            category.slug = slug

        if "parent_id" in updates:
            parent_id = updates.pop("parent_id")
            if parent_id is None:
                category.parent_id = None
                category.level = 0
            else:
                if await self._is_descendant(db, parent_id, category.id):
                    raise ValidationFailedError(
                        "A category cannot be its own ancestor"
                    )
                parent = await self._get_category(db, parent_id)
                category.parent_id = parent.id
                category.level = parent.level + 1
            await self._relevel_children(db, category)

        for field, value in updates.items():
            setattr(category, field, value)

        await db.commit()
        return category

    async def delete_category(self, db: AsyncSession, *, category_id: uuid.UUID) -> None:
        """Delete a category; its children move up to its parent."""
        category = await self._get_category(db, category_id)
        parent = (
            await self._get_category(db, category.parent_id)
            if category.parent_id
            else None
        )

        result = await db.execute(
            select(Category).where(Category.parent_id == category.id)
        )
        for child in result.scalars().all():
            child.parent_id = parent.id if parent else None
            child.level = parent.level + 1 if parent else 0
            await self._relevel_children(db, child)
        await db.flush()

        await db.delete(category)
        await db.commit()

    async def list_categories(
        self, db: AsyncSession, *, include_inactive: bool = False
    ) -> list[Category]:
        query = select(Category).order_by(
            Category.level, Category.sort_order, Category.name
        )
        if not include_inactive:
            query = query.where(Category.is_active.is_(True))
        return list((await db.execute(query)).scalars().all())

    async def get_category(self, db: AsyncSession, id_or_slug: str) -> Category:
        try:
            condition = Category.id == uuid.UUID(id_or_slug)
        except ValueError:
            condition = Category.slug == id_or_slug
        category = (
            await db.execute(select(Category).where(condition))
        ).scalar_one_or_none()
        if category is None:
            raise NotFoundError("Category not found")
        return category

    async def category_tree(self, db: AsyncSession) -> list[CategoryTree]:
        categories = await self.list_categories(db)
        nodes = {
            category.id: CategoryTree(
                **CategoryResponse.model_validate(category).model_dump()
            )
            for category in categories
        }
        roots: list[CategoryTree] = []
        for category in categories:
            node = nodes[category.id]
            parent = nodes.get(category.parent_id) if category.parent_id else None
            if parent is None:
                roots.append(node)
            else:
                parent.children.append(node)
        return roots

    # ------------------------------------------------------------------
    # Brands
    # ------------------------------------------------------------------

    async def create_brand(self, db: AsyncSession, *, data: BrandCreate) -> Brand:
        existing = await db.execute(select(Brand.id).where(Brand.name == data.name))
        if existing.first() is not None:
            raise ConflictError("Brand name already exists", field="name")
        slug = slugify(data.name)
        await self._ensure_unique_slug(db, Brand, slug)

        brand = Brand(slug=slug, **data.model_dump())
        db.add(brand)
        await db.commit()
        return brand

    async def update_brand(
        self, db: AsyncSession, *, brand_id: uuid.UUID, data: BrandUpdate
    ) -> Brand:
        brand = await self.get_brand(db, brand_id)
        updates = data.model_dump(exclude_unset=True)
        if "name" in updates and updates["name"]:
            slug = slugify(updates["name"])
            await self._ensure_unique_slug(db, Brand, slug, exclude_id=brand.id)
            brand.slug = slug
        for field, value in updates.items():
            setattr(brand, field, value)
        await db.commit()
        return brand

    async def get_brand(self, db: AsyncSession, brand_id: uuid.UUID) -> Brand:
        brand = await db.get(Brand, brand_id, populate_existing=True)
        if brand is None:
            raise NotFoundError("Brand not found")
        return brand

    async def list_brands(
        self, db: AsyncSession, *, include_inactive: bool = False
    ) -> list[Brand]:
        query = select(Brand).order_by(Brand.name)
        if not include_inactive:
            query = query.where(Brand.is_active.is_(True))
        return list((await db.execute(query)).scalars().all())

    async def delete_brand(self, db: AsyncSession, *, brand_id: uuid.UUID) -> None:
        brand = await self.get_brand(db, brand_id)
        await db.execute(
            update(Product)
            .where(Product.brand_id == brand.id)
            .values(brand_id=None)
            .execution_options(synchronize_session=False)
        )
        await db.delete(brand)
        await db.commit()


def _price_between(column, low: Optional[Decimal], high: Optional[Decimal]):
    clauses = []
    if low is not None:
        clauses.append(column >= low)
    if high is not None:
        clauses.append(column <= high)
    return and_(*clauses)
