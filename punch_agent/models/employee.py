from dataclasses import dataclass, field


@dataclass(frozen=True)
class Credentials:
    domain: str
    cpf: str
    password: str = field(repr=False)
    token: str = field(default="", repr=False)

    @property
    def login_user(self) -> str:
        """ゲートウェイのログインユーザー（CPF@ドメイン）"""
        return f"{self.cpf}@{self.domain}"

    def is_complete(self) -> bool:
        """4項目すべて揃っていれば保存済みセッションとして再利用できる"""
        return all([self.domain, self.cpf, self.password, self.token])


@dataclass(frozen=True)
class EmployeeContext:
    """イベント取得後に得られる従業員・会社情報。打刻送信時にそのまま返送する"""

    employee_id: str
    employee_arp_id: str
    employee_name: str
    pis: str
    cpf: str
    company_id: str
    company_arp_id: str
    company_name: str
    cnpj: str
    caepf: str
    cno_number: str
    shift: str
    time_table: str
    app_version: str
    time_zone: str
    signature: str
    signature_version: int
    use: int

    @classmethod
    def from_raw_event(cls, raw: dict) -> "EmployeeContext":
        """上流の打刻イベント1件から従業員情報を組み立てる"""
        employee = raw.get("employee") or {}
        company = employee.get("company") or {}
        return cls(
            employee_id=employee.get("id", ""),
            employee_arp_id=employee.get("arpId", ""),
            employee_name=employee.get("name", ""),
            pis=employee.get("pis", ""),
            cpf=employee.get("cpfNumber", ""),
            company_id=company.get("id", ""),
            company_arp_id=company.get("arpId", ""),
            company_name=company.get("name", ""),
            cnpj=company.get("cnpj", "") or raw.get("cnpj", ""),
            caepf=raw.get("caepf", ""),
            cno_number=raw.get("cnoNumber", ""),
            shift=employee.get("shift", ""),
            time_table=employee.get("timeTable", ""),
            app_version=raw.get("appVersion", ""),
            time_zone=raw.get("timeZone", ""),
            signature=raw.get("signature", ""),
            signature_version=int(raw.get("signatureVersion") or 0),
            use=int(raw.get("use") or 0),
        )

    def to_clocking_info(self) -> dict:
        """打刻送信リクエストの clockingInfo を生成"""
        return {
            "company": {
                "id": self.company_id,
                "arpId": self.company_arp_id,
                "identifier": self.cnpj,
                "caepf": self.caepf,
                "cnoNumber": self.cno_number,
            },
            "employee": {
                "id": self.employee_id,
                "arpId": self.employee_arp_id,
                "cpf": self.cpf,
                "pis": self.pis,
            },
            "appVersion": self.app_version,
            "timeZone": self.time_zone,
            "signature": {
                "signatureVersion": self.signature_version,
                "signature": self.signature,
            },
            "use": f"{self.use:02d}",
        }
