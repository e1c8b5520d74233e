from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static
from . import views

urlpatterns = [
                  path('admin/', admin.site.urls),

                  # Página inicial / healthcheck
                  path('', views.home, name='home'),

                  # Quadras, reservas e pagamento
                  path('booking/', include('booking.urls')),

                  # Contas de usuário
                  path('users/', include('users.urls')),

                  # Chat entre usuário e dono da quadra
                  path('chat/', include('chat.urls')),

                  # Painel do dono da quadra
                  path('manager/', include('manager.urls')),
              ] + static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
