from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('expenses', '0001_initial'),
        ('groups', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Activity',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type', models.CharField(choices=[('expense_created', 'Expense created'), ('expense_updated', 'Expense updated'), ('expense_deleted', 'Expense deleted'), ('settlement_created', 'Settlement created')], max_length=32)),
                ('amount', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('currency', models.CharField(blank=True, max_length=3)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('actor_member', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='activities_as_actor', to='groups.groupmember')),
                ('expense', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='activities', to='expenses.expense')),
                ('from_member', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='activities_as_payer', to='groups.groupmember')),
                ('group', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='activities', to='groups.group')),
                ('settlement', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='activities', to='expenses.settlement')),
                ('to_member', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='activities_as_receiver', to='groups.groupmember')),
            ],
            options={
                'verbose_name_plural': 'activities',
                'db_table': 'activities',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['group', 'created_at'], name='activities_group_idx'),
                    models.Index(fields=['created_at'], name='activities_created_idx'),
                ],
            },
        ),
    ]
