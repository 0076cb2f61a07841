"""
Initial migration for Allocman models.
"""

from decimal import Decimal
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    """Create Allocman models: Scope, Batch, InventoryRecord, Movement, Order, OrderItem, Allocation."""

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Scope',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.SlugField(help_text='Identificador único (ex: wh-sp, wh-sp-a01)', unique=True, verbose_name='Código')),
                ('name', models.CharField(max_length=100, verbose_name='Nome')),
                ('kind', models.CharField(choices=[('warehouse', 'Armazém'), ('location', 'Localização')], default='warehouse', max_length=20, verbose_name='Tipo')),
                ('is_active', models.BooleanField(default=True, help_text='Estoque em escopos inativos não é alocado.', verbose_name='Ativo')),
                ('metadata', models.JSONField(blank=True, default=dict, verbose_name='Metadados')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('parent', models.ForeignKey(blank=True, help_text='Somente para localizações', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='locations', to='allocman.scope', verbose_name='Armazém')),
            ],
            options={
                'verbose_name': 'Escopo',
                'verbose_name_plural': 'Escopos',
                'ordering': ['code'],
            },
        ),
        migrations.CreateModel(
            name='Batch',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=50, unique=True, verbose_name='Código do Lote')),
                ('kind', models.CharField(choices=[('product', 'Produto'), ('packaging_material', 'Material de Embalagem')], default='product', max_length=20, verbose_name='Tipo')),
                ('item_code', models.CharField(db_index=True, help_text='SKU para produtos, código do material para embalagens', max_length=64, verbose_name='Código do Item')),
                ('manufacture_date', models.DateField(blank=True, null=True, verbose_name='Data de Fabricação')),
                ('expiry_date', models.DateField(blank=True, db_index=True, help_text='Último dia em que o lote pode ser alocado. Vazio = não perecível.', null=True, verbose_name='Data de Validade')),
                ('initial_quantity', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Quantidade Original')),
                ('status', models.CharField(choices=[('active', 'Ativo'), ('quarantine', 'Quarentena'), ('suspended', 'Suspenso'), ('recalled', 'Recolhido'), ('depleted', 'Esgotado')], db_index=True, default='active', max_length=20, verbose_name='Status')),
                ('supplier', models.CharField(blank=True, default='', max_length=200, verbose_name='Fornecedor')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Observações')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Criado em')),
            ],
            options={
                'verbose_name': 'Lote',
                'verbose_name_plural': 'Lotes',
                'ordering': ['expiry_date', 'created_at'],
                'indexes': [
                    models.Index(fields=['kind', 'item_code'], name='batch_kind_item_idx'),
                    models.Index(fields=['status', 'expiry_date'], name='batch_status_expiry_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=50, unique=True, verbose_name='Número do Pedido')),
                ('allocation_status', models.CharField(choices=[('pending_allocation', 'Aguardando Alocação'), ('partially_allocated', 'Parcialmente Alocado'), ('fully_allocated', 'Totalmente Alocado'), ('failed', 'Falhou'), ('unknown', 'Desconhecido')], db_index=True, default='pending_allocation', max_length=30, verbose_name='Status de Alocação')),
                ('status_changed_at', models.DateTimeField(blank=True, null=True, verbose_name='Status alterado em')),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'verbose_name': 'Pedido',
                'verbose_name_plural': 'Pedidos',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='InventoryRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('total_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, verbose_name='Quantidade Total')),
                ('reserved_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, verbose_name='Quantidade Reservada')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('batch', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='records', to='allocman.batch', verbose_name='Lote')),
                ('scope', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='records', to='allocman.scope', verbose_name='Escopo')),
            ],
            options={
                'verbose_name': 'Registro de Estoque',
                'verbose_name_plural': 'Registros de Estoque',
                'indexes': [
                    models.Index(fields=['scope', 'batch'], name='inventory_scope_batch_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('batch', 'scope'), name='unique_inventory_record_batch_scope'),
                    models.CheckConstraint(condition=models.Q(('reserved_quantity__gte', 0)), name='inventory_record_reserved_non_negative'),
                    models.CheckConstraint(condition=models.Q(('reserved_quantity__lte', models.F('total_quantity'))), name='inventory_record_reserved_within_total'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Movement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('delta', models.DecimalField(decimal_places=3, help_text='Positivo = entrada, Negativo = saída', max_digits=12, verbose_name='Variação')),
                ('reason', models.CharField(help_text='Obrigatório. Ex: "Recebimento NF 123", "Inventário"', max_length=255, verbose_name='Motivo')),
                ('metadata', models.JSONField(blank=True, default=dict, verbose_name='Metadados')),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Data/Hora')),
                ('record', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='allocman.inventoryrecord', verbose_name='Registro de Estoque')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Usuário')),
            ],
            options={
                'verbose_name': 'Movimento',
                'verbose_name_plural': 'Movimentos',
                'ordering': ['timestamp'],
                'indexes': [
                    models.Index(fields=['record', 'timestamp'], name='movement_record_ts_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='OrderItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('kind', models.CharField(choices=[('product', 'Produto'), ('packaging_material', 'Material de Embalagem')], default='product', max_length=20, verbose_name='Tipo')),
                ('item_code', models.CharField(max_length=64, verbose_name='Código do Item')),
                ('quantity_ordered', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Quantidade Pedida')),
                ('status', models.CharField(choices=[('pending', 'Pendente'), ('partially_allocated', 'Parcialmente Alocado'), ('fully_allocated', 'Totalmente Alocado'), ('backordered', 'Sem Estoque'), ('allocation_failed', 'Falha na Alocação')], db_index=True, default='pending', max_length=30, verbose_name='Status')),
                ('status_changed_at', models.DateTimeField(blank=True, null=True, verbose_name='Status alterado em')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='allocman.order', verbose_name='Pedido')),
            ],
            options={
                'verbose_name': 'Item do Pedido',
                'verbose_name_plural': 'Itens do Pedido',
                'ordering': ['order', 'pk'],
                'indexes': [
                    models.Index(fields=['kind', 'item_code'], name='order_item_kind_code_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Allocation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Quantidade Alocada')),
                ('status', models.CharField(choices=[('allocated', 'Alocado'), ('released', 'Liberado')], db_index=True, default='allocated', max_length=20, verbose_name='Status')),
                ('strategy', models.CharField(choices=[('fefo', 'Primeiro a vencer, primeiro a sair'), ('fifo', 'Primeiro a entrar, primeiro a sair')], default='fefo', max_length=10, verbose_name='Estratégia')),
                ('attempt', models.PositiveSmallIntegerField(default=1, verbose_name='Tentativa')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('released_at', models.DateTimeField(blank=True, null=True, verbose_name='Liberado em')),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('batch', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='allocations', to='allocman.batch', verbose_name='Lote')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Usuário')),
                ('order_item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='allocations', to='allocman.orderitem', verbose_name='Item do Pedido')),
                ('scope', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='allocations', to='allocman.scope', verbose_name='Escopo')),
            ],
            options={
                'verbose_name': 'Alocação',
                'verbose_name_plural': 'Alocações',
                'ordering': ['created_at', 'pk'],
                'indexes': [
                    models.Index(fields=['batch', 'scope', 'status'], name='allocation_batch_scope_idx'),
                    models.Index(fields=['order_item', 'status'], name='allocation_item_status_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('quantity__gt', 0)), name='allocation_quantity_positive'),
                ],
            },
        ),
    ]
