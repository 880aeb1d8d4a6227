"""create visa checkout tables

Revision ID: 5a7c1e9d2b40
Revises:
Create Date: 2026-10-19 10:12:31.418205

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '5a7c1e9d2b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade():
    op.create_table(
        "visa_products",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=False, server_default=""),
        sa.Column("base_price_usd", sa.Float(), nullable=False, server_default="0"),
        sa.Column("extra_unit_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("extra_unit_label", sa.String(), nullable=False, server_default="Dependents"),
        sa.Column("calculation_type", sa.String(), nullable=False, server_default="base_plus_units"),
        sa.Column("allow_extra_units", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_visa_products_slug", "visa_products", ["slug"], unique=True)
    op.create_index("ix_visa_products_is_active", "visa_products", ["is_active"])

    op.create_table(
        "visa_orders",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("order_number", sa.String(), nullable=False),
        sa.Column("product_slug", sa.String(), nullable=False),
        sa.Column("seller_id", sa.String(), nullable=True),
        sa.Column("service_request_id", sa.String(), nullable=True),
        sa.Column("base_price_usd", sa.Float(), nullable=False),
        sa.Column("extra_units", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("extra_unit_label", sa.String(), nullable=True),
        sa.Column("extra_unit_price_usd", sa.Float(), nullable=False),
        sa.Column("calculation_type", sa.String(), nullable=False),
        sa.Column("total_price_usd", sa.Float(), nullable=False),
        sa.Column("client_name", sa.String(), nullable=False),
        sa.Column("client_email", sa.String(), nullable=False),
        sa.Column("client_whatsapp", sa.String(), nullable=True),
        sa.Column("client_country", sa.String(), nullable=True),
        sa.Column("client_nationality", sa.String(), nullable=True),
        sa.Column("client_observations", sa.String(), nullable=True),
        sa.Column("payment_method", sa.String(), nullable=False),
        sa.Column("payment_status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("stripe_session_id", sa.String(), nullable=True),
        sa.Column("stripe_payment_intent_id", sa.String(), nullable=True),
        sa.Column("wise_transfer_id", sa.String(), nullable=True),
        sa.Column("wise_payment_status", sa.String(), nullable=True),
        sa.Column("wise_quote_uuid", sa.String(), nullable=True),
        sa.Column("wise_recipient_id", sa.String(), nullable=True),
        sa.Column("zelle_proof_url", sa.String(), nullable=True),
        sa.Column("payment_metadata", sa.JSON(), nullable=True),
        sa.Column("contract_document_url", sa.String(), nullable=True),
        sa.Column("contract_selfie_url", sa.String(), nullable=True),
        sa.Column("contract_accepted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("contract_signed_at", sa.DateTime(), nullable=True),
        sa.Column("contract_pdf_url", sa.String(), nullable=True),
        sa.Column("ip_address", sa.String(), nullable=True),
        sa.Column("contract_approval_status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("contract_approval_reviewed_by", sa.String(), nullable=True),
        sa.Column("contract_approval_reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("contract_rejection_reason", sa.String(), nullable=True),
        sa.Column("annex_approval_status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("annex_approval_reviewed_by", sa.String(), nullable=True),
        sa.Column("annex_approval_reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("annex_rejection_reason", sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_visa_orders_order_number", "visa_orders", ["order_number"], unique=True)
    op.create_index("ix_visa_orders_product_slug", "visa_orders", ["product_slug"])
    op.create_index("ix_visa_orders_seller_id", "visa_orders", ["seller_id"])
    op.create_index("ix_visa_orders_service_request_id", "visa_orders", ["service_request_id"])
    op.create_index("ix_visa_orders_payment_status", "visa_orders", ["payment_status"])
    op.create_index("ix_visa_orders_stripe_session_id", "visa_orders", ["stripe_session_id"])
    op.create_index("ix_visa_orders_wise_transfer_id", "visa_orders", ["wise_transfer_id"])

    op.create_table(
        "payments",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("order_id", sa.String(), nullable=True),
        sa.Column("service_request_id", sa.String(), nullable=True),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("currency", sa.String(), nullable=False, server_default="USD"),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("external_payment_id", sa.String(), nullable=True),
        sa.Column("raw_webhook_log", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_payments_order_id", "payments", ["order_id"])
    op.create_index("ix_payments_service_request_id", "payments", ["service_request_id"])
    op.create_index("ix_payments_external_payment_id", "payments", ["external_payment_id"])

    op.create_table(
        "visa_contract_view_tokens",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("order_id", sa.String(), sa.ForeignKey("visa_orders.id"), nullable=False),
        sa.Column("token", sa.String(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_visa_contract_view_tokens_order_id", "visa_contract_view_tokens", ["order_id"])
    op.create_index("ix_visa_contract_view_tokens_token", "visa_contract_view_tokens", ["token"], unique=True)

    op.create_table(
        "visa_contract_resubmission_tokens",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("order_id", sa.String(), sa.ForeignKey("visa_orders.id"), nullable=False),
        sa.Column("token", sa.String(), nullable=False),
        sa.Column("contract_type", sa.String(), nullable=False, server_default="contract"),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("used_at", sa.DateTime(), nullable=True),
        sa.Column("created_by", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index(
        "ix_visa_contract_resubmission_tokens_order_id",
        "visa_contract_resubmission_tokens",
        ["order_id"],
    )
    op.create_index(
        "ix_visa_contract_resubmission_tokens_token",
        "visa_contract_resubmission_tokens",
        ["token"],
        unique=True,
    )

    op.create_table(
        "checkout_prefill_tokens",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("token", sa.String(), nullable=False),
        sa.Column("product_slug", sa.String(), nullable=False),
        sa.Column("seller_id", sa.String(), nullable=True),
        sa.Column("client_data", sa.JSON(), nullable=True),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_checkout_prefill_tokens_token", "checkout_prefill_tokens", ["token"], unique=True)

    op.create_table(
        "wise_transfers",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("wise_transfer_id", sa.String(), nullable=False),
        sa.Column("order_id", sa.String(), sa.ForeignKey("visa_orders.id"), nullable=True),
        sa.Column("wise_quote_uuid", sa.String(), nullable=True),
        sa.Column("wise_recipient_id", sa.String(), nullable=True),
        sa.Column("source_currency", sa.String(), nullable=True),
        sa.Column("target_currency", sa.String(), nullable=True),
        sa.Column("source_amount", sa.Float(), nullable=True),
        sa.Column("target_amount", sa.Float(), nullable=True),
        sa.Column("exchange_rate", sa.Float(), nullable=True),
        sa.Column("fee_amount", sa.Float(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("status_details", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_wise_transfers_wise_transfer_id", "wise_transfers", ["wise_transfer_id"], unique=True)
    op.create_index("ix_wise_transfers_order_id", "wise_transfers", ["order_id"])

    op.create_table(
        "zelle_payments",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("order_id", sa.String(), sa.ForeignKey("visa_orders.id"), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("currency", sa.String(), nullable=False, server_default="USD"),
        sa.Column("screenshot_url", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="pending_verification"),
        sa.Column("admin_notes", sa.String(), nullable=True),
        sa.Column("processed_by_user_id", sa.String(), nullable=True),
        sa.Column("admin_approved_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_zelle_payments_order_id", "zelle_payments", ["order_id"])

    op.create_table(
        "order_event",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("order_id", sa.String(), sa.ForeignKey("visa_orders.id"), nullable=False),
        sa.Column("event_type", sa.String(), nullable=False),
        sa.Column("label", sa.String(), nullable=False),
        sa.Column("meta", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("created_by", sa.String(), nullable=False, server_default="system"),
    )
    # indexes for fast timeline queries
    op.create_index("ix_order_event_order_id", "order_event", ["order_id"])
    op.create_index("ix_order_event_event_type", "order_event", ["event_type"])

    op.create_table(
        "email_log",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("to_email", sa.String(), nullable=False),
        sa.Column("subject", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("error", sa.String(), nullable=True),
        sa.Column("idempotency_key", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_email_log_idempotency_key", "email_log", ["idempotency_key"], unique=True)


def downgrade():
    op.drop_index("ix_email_log_idempotency_key", table_name="email_log")
    op.drop_table("email_log")

    op.drop_index("ix_order_event_event_type", table_name="order_event")
    op.drop_index("ix_order_event_order_id", table_name="order_event")
    op.drop_table("order_event")

    op.drop_index("ix_zelle_payments_order_id", table_name="zelle_payments")
    op.drop_table("zelle_payments")

    op.drop_index("ix_wise_transfers_order_id", table_name="wise_transfers")
    op.drop_index("ix_wise_transfers_wise_transfer_id", table_name="wise_transfers")
    op.drop_table("wise_transfers")

    op.drop_index("ix_checkout_prefill_tokens_token", table_name="checkout_prefill_tokens")
    op.drop_table("checkout_prefill_tokens")

    op.drop_index(
        "ix_visa_contract_resubmission_tokens_token",
        table_name="visa_contract_resubmission_tokens",
    )
    op.drop_index(
        "ix_visa_contract_resubmission_tokens_order_id",
        table_name="visa_contract_resubmission_tokens",
    )
    op.drop_table("visa_contract_resubmission_tokens")

    op.drop_index("ix_visa_contract_view_tokens_token", table_name="visa_contract_view_tokens")
    op.drop_index("ix_visa_contract_view_tokens_order_id", table_name="visa_contract_view_tokens")
    op.drop_table("visa_contract_view_tokens")

    op.drop_index("ix_payments_external_payment_id", table_name="payments")
    op.drop_index("ix_payments_service_request_id", table_name="payments")
    op.drop_index("ix_payments_order_id", table_name="payments")
    op.drop_table("payments")

    for index in (
        "ix_visa_orders_wise_transfer_id",
        "ix_visa_orders_stripe_session_id",
        "ix_visa_orders_payment_status",
        "ix_visa_orders_service_request_id",
        "ix_visa_orders_seller_id",
        "ix_visa_orders_product_slug",
        "ix_visa_orders_order_number",
    ):
        op.drop_index(index, table_name="visa_orders")
    op.drop_table("visa_orders")

    op.drop_index("ix_visa_products_is_active", table_name="visa_products")
    op.drop_index("ix_visa_products_slug", table_name="visa_products")
    op.drop_table("visa_products")
