from fpdf import FPDF


def notice_pdf(text, title="Pay or Quit Notice"):
    """Lay rendered notice text out on A4 pages; first line is the heading."""
    pdf = FPDF()
    pdf.set_title(title)
    pdf.add_page()

    for index, line in enumerate(text.splitlines()):
        # Core fonts are latin-1 only
        line = line.encode("latin-1", "replace").decode("latin-1")
        if index == 0:
            pdf.set_font("Helvetica", style="B", size=14)
            pdf.multi_cell(0, 8, line, align="C", new_x="LMARGIN", new_y="NEXT")
            pdf.set_font("Helvetica", size=11)
        elif line:
            pdf.multi_cell(0, 6, line, new_x="LMARGIN", new_y="NEXT")
        else:
            pdf.ln(6)

    return bytes(pdf.output())
