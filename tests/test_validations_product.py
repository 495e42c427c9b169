import pytest

from storefront.validations import CreateProductSchema, ProductSchema, UpdateProductSchema, safe_parse


def make_valid_product_input(**overrides):
    data = {
        'name': 'Test Product',
        'slug': 'test-product-1',
        'price': 9.9,
        'maxQuantity': 10,
        'minQuantity': 1,
    }
    data.update(overrides)
    return data


def test_minimal_product_gets_defaults():
    result = safe_parse(ProductSchema, make_valid_product_input())

    assert result.success
    assert result.data['isActive'] is True
    assert result.data['isFeatured'] is False
    assert result.data['sortOrder'] == 0
    assert result.data['stock'] == 0


def test_missing_required_field_is_rejected():
    result = safe_parse(ProductSchema, {'slug': 'x', 'price': 1, 'maxQuantity': 1, 'minQuantity': 1})

    assert not result.success
    assert [e['path'] for e in result.errors] == ['name']


@pytest.mark.parametrize('slug', ['Bad Slug!', 'UPPER', 'with space', 'under_score', 'dot.ted'])
def test_bad_slug_is_rejected(slug):
    result = safe_parse(ProductSchema, make_valid_product_input(slug=slug))

    assert not result.success
    assert any('slug may only contain' in e['message'] for e in result.errors)
    assert result.errors[0]['path'] == 'slug'


@pytest.mark.parametrize('cover_image', ['', None, 'https://example.com/a.png'])
def test_cover_image_accepts_empty_null_or_url(cover_image):
    assert safe_parse(ProductSchema, make_valid_product_input(coverImage=cover_image)).success


def test_cover_image_rejects_other_strings():
    result = safe_parse(ProductSchema, make_valid_product_input(coverImage='not-a-url'))

    assert not result.success
    assert result.errors[0]['path'] == 'coverImage'


def test_cover_image_keeps_original_string():
    result = safe_parse(ProductSchema, make_valid_product_input(coverImage='https://example.com'))

    assert result.data['coverImage'] == 'https://example.com'


def test_max_quantity_below_min_is_rejected_on_max_quantity():
    result = safe_parse(ProductSchema, make_valid_product_input(minQuantity=5, maxQuantity=2))

    assert not result.success
    assert result.errors == [
        {'path': 'maxQuantity', 'message': 'max quantity cannot be less than min quantity'}
    ]


def test_update_allows_partial_input():
    result = safe_parse(UpdateProductSchema, {'name': 'Only Name Updated'})

    assert result.success
    assert result.data == {'name': 'Only Name Updated'}


def test_update_keeps_field_rules():
    assert not safe_parse(UpdateProductSchema, {'slug': 'Bad Slug!'}).success
    assert not safe_parse(UpdateProductSchema, {'coverImage': 'not-a-url'}).success
    assert not safe_parse(UpdateProductSchema, {'name': None}).success
    assert safe_parse(UpdateProductSchema, {'coverImage': None}).data == {'coverImage': None}


def test_create_schema_behaves_like_product_schema():
    data = make_valid_product_input()
    assert safe_parse(CreateProductSchema, data) == safe_parse(ProductSchema, data)


def test_revalidating_normalized_record_is_stable():
    first = safe_parse(ProductSchema, make_valid_product_input(coverImage='', categoryId=None))
    second = safe_parse(ProductSchema, first.data)

    assert second.success
    assert second.data == first.data


@pytest.mark.parametrize('payload', [None, 'product', 42, ['name']])
def test_malformed_payload_returns_failure(payload):
    result = safe_parse(ProductSchema, payload)

    assert not result.success
    assert result.data is None
    assert result.errors
