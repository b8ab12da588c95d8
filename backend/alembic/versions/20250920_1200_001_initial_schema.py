"""Initial schema - cedentes, compras, vendas e comissões

Revision ID: 001
Revises: 
Create Date: 2025-09-20 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # === Cedentes ===
    op.create_table(
        'cedentes',
        sa.Column('identificador', sa.String(50), nullable=False),
        sa.Column('nome', sa.String(255), nullable=True),
        sa.Column('nome_completo', sa.String(255), nullable=True),
        sa.Column('latam', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('smiles', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('livelo', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('esfera', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('identificador')
    )

    # === Compras ===
    op.create_table(
        'compras',
        sa.Column('id', sa.String(50), nullable=False),
        sa.Column('data_compra', sa.String(10), nullable=False, server_default=''),
        sa.Column('status_pontos', sa.String(20), nullable=False, server_default='aguardando'),
        sa.Column('cedente_id', sa.String(50), nullable=False, server_default=''),
        sa.Column('cedente_nome', sa.String(255), nullable=False, server_default=''),
        sa.Column('itens', sa.JSON(), nullable=False),
        sa.Column('total_pts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('custo_total', sa.Float(), nullable=False, server_default='0'),
        sa.Column('custo_milheiro', sa.Float(), nullable=False, server_default='0'),
        sa.Column('lucro_total', sa.Float(), nullable=False, server_default='0'),
        sa.Column('modo', sa.String(20), nullable=True),
        sa.Column('cia_compra', sa.String(20), nullable=True),
        sa.Column('dest_cia', sa.String(20), nullable=True),
        sa.Column('origem', sa.String(20), nullable=True),
        sa.Column('meta_milheiro', sa.Float(), nullable=True),
        sa.Column('comissao_cedente', sa.Float(), nullable=True),
        sa.Column('saved_at', sa.BigInteger(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_compras_data_compra'), 'compras', ['data_compra'], unique=False)
    op.create_index(op.f('ix_compras_cedente_id'), 'compras', ['cedente_id'], unique=False)
    op.create_index(op.f('ix_compras_modo'), 'compras', ['modo'], unique=False)
    op.create_index('ix_compras_data_id', 'compras', ['data_compra', 'id'], unique=False)

    # === Vendas ===
    op.create_table(
        'vendas',
        sa.Column('id', sa.String(30), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('data', sa.String(10), nullable=False, server_default=''),
        sa.Column('pontos', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('cia', sa.String(20), nullable=False),
        sa.Column('qtd_passageiros', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('funcionario_id', sa.String(50), nullable=True),
        sa.Column('funcionario_nome', sa.String(255), nullable=True),
        sa.Column('user_name', sa.String(255), nullable=True),
        sa.Column('user_email', sa.String(255), nullable=True),
        sa.Column('cliente_id', sa.String(50), nullable=True),
        sa.Column('cliente_nome', sa.String(255), nullable=True),
        sa.Column('cliente_origem', sa.String(100), nullable=True),
        sa.Column('conta_escolhida', sa.JSON(), nullable=True),
        sa.Column('sugestao_combinacao', sa.JSON(), nullable=False),
        sa.Column('milheiros', sa.Float(), nullable=False, server_default='0'),
        sa.Column('valor_milheiro', sa.Float(), nullable=False, server_default='0'),
        sa.Column('valor_pontos', sa.Float(), nullable=False, server_default='0'),
        sa.Column('taxa_embarque', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_cobrar', sa.Float(), nullable=False, server_default='0'),
        sa.Column('meta_milheiro', sa.Float(), nullable=True),
        sa.Column('comissao_base', sa.Float(), nullable=False, server_default='0'),
        sa.Column('comissao_bonus_meta', sa.Float(), nullable=False, server_default='0'),
        sa.Column('comissao_total', sa.Float(), nullable=False, server_default='0'),
        sa.Column('cartao_funcionario_id', sa.String(50), nullable=True),
        sa.Column('cartao_funcionario_nome', sa.String(255), nullable=True),
        sa.Column('pagamento_status', sa.String(20), nullable=False, server_default='pendente'),
        sa.Column('localizador', sa.String(20), nullable=True),
        sa.Column('origem_iata', sa.String(10), nullable=True),
        sa.Column('sobrenome', sa.String(120), nullable=True),
        sa.Column('cancel_info', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_vendas_created_at'), 'vendas', ['created_at'], unique=False)

    # === Comissões ===
    op.create_table(
        'comissoes',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('compra_id', sa.String(50), nullable=False),
        sa.Column('cedente_id', sa.String(50), nullable=False),
        sa.Column('cedente_nome', sa.String(255), nullable=False, server_default=''),
        sa.Column('valor', sa.Float(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='aguardando'),
        sa.Column('criado_em', sa.DateTime(timezone=True), nullable=True),
        sa.Column('atualizado_em', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('compra_id', 'cedente_id', name='uq_comissoes_compra_cedente')
    )
    op.create_index(op.f('ix_comissoes_compra_id'), 'comissoes', ['compra_id'], unique=False)
    op.create_index(op.f('ix_comissoes_cedente_id'), 'comissoes', ['cedente_id'], unique=False)
    op.create_index(op.f('ix_comissoes_criado_em'), 'comissoes', ['criado_em'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_comissoes_criado_em'), table_name='comissoes')
    op.drop_index(op.f('ix_comissoes_cedente_id'), table_name='comissoes')
    op.drop_index(op.f('ix_comissoes_compra_id'), table_name='comissoes')
    op.drop_table('comissoes')

    op.drop_index(op.f('ix_vendas_created_at'), table_name='vendas')
    op.drop_table('vendas')

    op.drop_index('ix_compras_data_id', table_name='compras')
    op.drop_index(op.f('ix_compras_modo'), table_name='compras')
    op.drop_index(op.f('ix_compras_cedente_id'), table_name='compras')
    op.drop_index(op.f('ix_compras_data_compra'), table_name='compras')
    op.drop_table('compras')

    op.drop_table('cedentes')
