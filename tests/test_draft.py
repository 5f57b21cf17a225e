from __future__ import annotations

from catalog_admin.schemas import ProductDraft


def test_add_tag_rejects_duplicates_case_sensitively() -> None:
    draft = ProductDraft()

    assert draft.add_tag("verao") is True
    assert draft.add_tag("verao") is False
    assert draft.add_tag("Verao") is True
    assert draft.add_tag("   ") is False
    assert draft.tags == ["verao", "Verao"]


def test_remove_tag_shifts_following_tags() -> None:
    draft = ProductDraft(tags=["a", "b", "c", "d"])

    draft.remove_tag(1)
    assert draft.tags == ["a", "c", "d"]

    draft.remove_tag(10)
    assert draft.tags == ["a", "c", "d"]


def test_uploaded_images_follow_url_images(normalizer) -> None:
    draft = ProductDraft(name="Camisa Polo", price="89,90", images=["https://cdn/x.jpg"])
    draft.add_uploaded_images(["data:image/png;base64,AAAA", ""])

    product = normalizer.normalize(draft)

    assert product.images == ["https://cdn/x.jpg", "data:image/png;base64,AAAA"]


def test_from_product_does_not_duplicate_uploads(normalizer) -> None:
    draft = ProductDraft(name="Camisa Polo", price="89,90", uploaded_images=["data:a"])
    product = normalizer.normalize(draft)

    edited = normalizer.normalize(ProductDraft.from_product(product), existing=product)

    assert edited.images == ["data:a"]


def test_draft_accepts_camel_case_payload() -> None:
    draft = ProductDraft.model_validate(
        {"name": "Camisa", "price": "10", "uploadedImages": ["u"], "briefingQuestions": ["q"]}
    )

    assert draft.uploaded_images == ["u"]
    assert draft.briefing_questions == ["q"]
