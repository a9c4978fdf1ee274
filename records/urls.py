from django.urls import path

from records.views import ApplyView, HealthCheckView, RecordView

app_name = "records"

urlpatterns = [
    path("record/apply/", ApplyView.as_view(), name="record-apply"),
    path("record/", RecordView.as_view(), name="record-detail"),
    path("health/", HealthCheckView.as_view(), name="health"),
]
