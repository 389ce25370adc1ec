from datetime import datetime
from html import escape
from typing import Optional

BACKGROUND_COLOR = "#111111"
TEXT_COLOR = "#EFF3F6"
ACCENT_COLOR_RED = "#FF0909"
ACCENT_COLOR_CYAN = "#3DF2D3"


# Builds the HTML body of the "next steps" email sent after a form is stored
def render_onboarding_email(name: str, link: str, year: Optional[int] = None) -> str:
    year = year or datetime.now().year
    safe_name = escape(name or "")
    safe_link = escape(link or "", quote=True)

    return f"""
      <!DOCTYPE html>
      <html>
      <head>
        <meta charset="UTF-8">
        <title>Siguientes Pasos en Blockey</title>
      </head>
      <body style="margin: 0; padding: 0; background-color: {BACKGROUND_COLOR};">
        <table border="0" cellpadding="0" cellspacing="0" width="100%">
          <tr>
            <td style="padding: 20px 0;">
              <table align="center" border="0" cellpadding="0" cellspacing="0" width="600" style="border-collapse: collapse; background-color: #1A1A1A; border-radius: 15px; overflow: hidden;">
                <tr>
                  <td align="center" style="padding: 40px 30px 30px 30px;">
                    <h1 style="color: {ACCENT_COLOR_RED}; margin: 0; font-family: Arial, sans-serif; font-size: 24px;">Blockey</h1>
                  </td>
                </tr>
                <tr>
                  <td style="padding: 0 30px 40px 30px;">
                    <table border="0" cellpadding="0" cellspacing="0" width="100%">
                      <tr>
                        <td style="color: {TEXT_COLOR}; font-family: Arial, sans-serif; font-size: 16px; line-height: 1.6;">
                          <h2 style="font-size: 20px; margin: 0 0 20px 0;">Hola {safe_name},</h2>
                          <p style="margin: 0 0 15px 0;">Hemos recibido tu solicitud correctamente y nuestro equipo la está revisando.</p>
                          <p style="margin: 0 0 25px 0;">El siguiente paso es completar la <strong>verificación de identidad (KYC/KYB)</strong>. Este es un requisito fundamental para garantizar la seguridad de nuestra plataforma. Por favor, haz clic en el botón de abajo para continuar.</p>
                        </td>
                      </tr>
                      <tr>
                        <td align="center" style="padding: 10px 0;">
                          <a href="{safe_link}" target="_blank" style="display: inline-block; padding: 14px 28px; background-color: #252525; color: {TEXT_COLOR}; font-family: Arial, sans-serif; font-size: 16px; font-weight: bold; text-decoration: none; border-radius: 12px; border: 2px solid {ACCENT_COLOR_CYAN};">
                            Iniciar Verificación
                          </a>
                        </td>
                      </tr>
                      <tr>
                        <td style="padding: 25px 0 0 0; color: #989898; font-family: Arial, sans-serif; font-size: 14px; line-height: 1.6;">
                          <p style="margin: 0;">Recibirás tus credenciales de acceso a la plataforma en un correo electrónico separado una vez que tu verificación haya sido aprobada.</p>
                        </td>
                      </tr>
                    </table>
                  </td>
                </tr>
                <tr>
                  <td style="background-color: #000000; padding: 30px;">
                    <p style="margin: 0; color: #666666; font-family: Arial, sans-serif; font-size: 12px; text-align: center;">
                      &copy; {year} Blockey. Todos los derechos reservados.
                    </p>
                  </td>
                </tr>
              </table>
            </td>
          </tr>
        </table>
      </body>
      </html>
    """
