"""schema inicial do estoque agrícola

Revision ID: 20261019_01
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '20261019_01'
down_revision = None
branch_labels = None
depends_on = None

_TIPO_ENTRADA = sa.Enum('COMPRA', 'TRANSFERENCIA_POSITIVA', name='tipoentrada')
_TIPO_SAIDA = sa.Enum('APLICACAO', 'TRANSFERENCIA_NEGATIVA', name='tiposaida')
_USER_ROLE = sa.Enum('ADMIN', 'USER', name='userrole')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'companies',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('cnpj', sa.String(length=18), nullable=True, unique=True),
        sa.Column('cpf', sa.String(length=14), nullable=True, unique=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('telefone', sa.String(length=20), nullable=True),
        sa.Column('endereco', sa.String(length=500), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=200), nullable=False),
        sa.Column('role', _USER_ROLE, nullable=False),
        sa.Column('avatar_url', sa.String(length=500), nullable=True),
        sa.Column('company_id', sa.String(length=36), sa.ForeignKey('companies.id'), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_company_id', 'users', ['company_id'])

    op.create_table(
        'fazendas',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('company_id', sa.String(length=36), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('area', sa.Numeric(14, 4), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_fazendas_company_id', 'fazendas', ['company_id'])
    op.create_index('ix_fazendas_user_id', 'fazendas', ['user_id'])

    op.create_table(
        'talhoes',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('company_id', sa.String(length=36), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('fazenda_id', sa.String(length=36), sa.ForeignKey('fazendas.id'), nullable=True),
        sa.Column('nome', sa.String(length=200), nullable=False),
        sa.Column('descricao', sa.Text(), nullable=True),
        sa.Column('area', sa.Numeric(14, 4), nullable=True),
        sa.Column('localizacao', sa.String(length=500), nullable=True),
        sa.Column('ativo', sa.Boolean(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_talhoes_company_id', 'talhoes', ['company_id'])
    op.create_index('ix_talhoes_user_id', 'talhoes', ['user_id'])
    op.create_index('ix_talhoes_fazenda_id', 'talhoes', ['fazenda_id'])

    op.create_table(
        'fornecedores',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('company_id', sa.String(length=36), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('nome', sa.String(length=200), nullable=False),
        sa.Column('cnpj', sa.String(length=14), nullable=True),
        sa.Column('cpf', sa.String(length=11), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('telefone', sa.String(length=20), nullable=True),
        sa.Column('endereco', sa.String(length=500), nullable=True),
        sa.Column('ativo', sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('company_id', 'cnpj', name='uq_fornecedor_company_cnpj'),
        sa.UniqueConstraint('company_id', 'cpf', name='uq_fornecedor_company_cpf'),
    )
    op.create_index('ix_fornecedores_company_id', 'fornecedores', ['company_id'])
    op.create_index('ix_fornecedores_user_id', 'fornecedores', ['user_id'])
    op.create_index('ix_fornecedores_cnpj', 'fornecedores', ['cnpj'])
    op.create_index('ix_fornecedores_cpf', 'fornecedores', ['cpf'])

    op.create_table(
        'produtos',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('company_id', sa.String(length=36), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('nome', sa.String(length=200), nullable=False),
        sa.Column('descricao', sa.Text(), nullable=True),
        sa.Column('unidade', sa.String(length=20), nullable=False),
        sa.Column('categoria', sa.String(length=100), nullable=True),
        sa.Column('codigo_barras', sa.String(length=50), nullable=True),
        sa.Column('ativo', sa.Boolean(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_produtos_company_id', 'produtos', ['company_id'])
    op.create_index('ix_produtos_user_id', 'produtos', ['user_id'])
    op.create_index('ix_produtos_nome', 'produtos', ['nome'])
    op.create_index('ix_produtos_categoria', 'produtos', ['categoria'])

    op.create_table(
        'estoques',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('company_id', sa.String(length=36), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('produto_id', sa.String(length=36), sa.ForeignKey('produtos.id'), nullable=False),
        sa.Column('quantidade', sa.Numeric(14, 4), nullable=True),
        sa.Column('quantidade_minima', sa.Numeric(14, 4), nullable=True),
        sa.Column('valor_medio', sa.Numeric(18, 6), nullable=True),
        sa.Column('ultima_atualizacao', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('company_id', 'produto_id', name='uq_estoque_company_produto'),
    )
    op.create_index('ix_estoques_company_id', 'estoques', ['company_id'])
    op.create_index('ix_estoques_produto_id', 'estoques', ['produto_id'])

    op.create_table(
        'entradas',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('company_id', sa.String(length=36), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('tipo', _TIPO_ENTRADA, nullable=False),
        sa.Column('quantidade', sa.Numeric(14, 4), nullable=False),
        sa.Column('valor_unitario', sa.Numeric(18, 6), nullable=True),
        sa.Column('valor_total', sa.Numeric(18, 6), nullable=True),
        sa.Column('numero_nota', sa.String(length=50), nullable=True),
        sa.Column('observacoes', sa.Text(), nullable=True),
        sa.Column('data_entrada', sa.DateTime(), nullable=False),
        sa.Column('produto_id', sa.String(length=36), sa.ForeignKey('produtos.id'), nullable=False),
        sa.Column('fornecedor_id', sa.String(length=36), sa.ForeignKey('fornecedores.id'), nullable=True),
        *_timestamps(),
    )
    for col in ('company_id', 'user_id', 'data_entrada', 'produto_id', 'fornecedor_id'):
        op.create_index(f'ix_entradas_{col}', 'entradas', [col])

    op.create_table(
        'saidas',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('company_id', sa.String(length=36), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('tipo', _TIPO_SAIDA, nullable=False),
        sa.Column('quantidade', sa.Numeric(14, 4), nullable=False),
        sa.Column('observacoes', sa.Text(), nullable=True),
        sa.Column('data_saida', sa.DateTime(), nullable=False),
        sa.Column('produto_id', sa.String(length=36), sa.ForeignKey('produtos.id'), nullable=False),
        sa.Column('talhao_id', sa.String(length=36), sa.ForeignKey('talhoes.id'), nullable=True),
        *_timestamps(),
    )
    for col in ('company_id', 'user_id', 'data_saida', 'produto_id', 'talhao_id'):
        op.create_index(f'ix_saidas_{col}', 'saidas', [col])

    op.create_table(
        'audit_log',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('timestamp', sa.DateTime(), nullable=True),
        sa.Column('user_id', sa.String(length=36), nullable=True),
        sa.Column('company_id', sa.String(length=36), nullable=True),
        sa.Column('module', sa.String(length=50), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('entity_type', sa.String(length=100), nullable=True),
        sa.Column('entity_id', sa.String(length=36), nullable=True),
        sa.Column('summary', sa.String(length=500), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        comment='Auditoria - imutável',
    )
    for col in ('user_id', 'company_id', 'module', 'action', 'entity_id'):
        op.create_index(f'ix_audit_log_{col}', 'audit_log', [col])


def downgrade() -> None:
    op.drop_table('audit_log')
    op.drop_table('saidas')
    op.drop_table('entradas')
    op.drop_table('estoques')
    op.drop_table('produtos')
    op.drop_table('fornecedores')
    op.drop_table('talhoes')
    op.drop_table('fazendas')
    op.drop_table('users')
    op.drop_table('companies')
    _TIPO_SAIDA.drop(op.get_bind(), checkfirst=True)
    _TIPO_ENTRADA.drop(op.get_bind(), checkfirst=True)
    _USER_ROLE.drop(op.get_bind(), checkfirst=True)
