from sqlalchemy import Column, Integer, String, text

from shortlinks.database import Base

URL_MAX_LENGTH = 2048
TITLE_MAX_LENGTH = 255


class Link(Base):
    __tablename__ = "links"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    code = Column(String(16), unique=True, index=True, nullable=False)
    original_url = Column(String(URL_MAX_LENGTH), nullable=False)
    title = Column(String(TITLE_MAX_LENGTH), nullable=True)
    clicks = Column(Integer, nullable=False, default=0, server_default=text("0"))

    def __repr__(self):
        return f"<Link {self.code} -> {self.original_url}>"
